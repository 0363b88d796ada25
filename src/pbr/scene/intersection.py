"""Scene-level surface storage and nearest-hit intersection.

Surfaces are stored in Taichi fields (Structure-of-Arrays layout): a kind
tag, a material id and the forward and inverse affine transforms split
into a 3x3 linear part and a translation. ``surface_intersect`` and
``surface_at`` dispatch on the kind tag; ``intersect_scene`` walks every
surface and keeps the globally nearest hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.geometry.sphere import Sphere
    >>> from pbr.scene.intersection import add_surface, clear_scene
    >>> clear_scene()
    >>> add_surface(Sphere.at_position(0, (0.0, 0.0, -1.0), 0.5))
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pbr.core.transform import inverse, split_affine
from pbr.geometry.sphere import intersect_sphere, sphere_normal
from pbr.geometry.surface import Surface, SurfaceKind

vec3 = tm.vec3

_SPHERE = int(SurfaceKind.SPHERE)

# Distance reported when a ray hits nothing
T_MAX = 1e10

# Maximum number of surfaces supported in the scene
MAX_SURFACES = 1024

surface_kinds = ti.field(dtype=ti.i32, shape=MAX_SURFACES)
surface_material_ids = ti.field(dtype=ti.i32, shape=MAX_SURFACES)
surface_linears = ti.Matrix.field(3, 3, dtype=ti.f32, shape=MAX_SURFACES)
surface_inv_linears = ti.Matrix.field(3, 3, dtype=ti.f32, shape=MAX_SURFACES)
surface_inv_offsets = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SURFACES)
num_surfaces = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all surfaces from the scene.

    Resets the surface count to zero. The field data is overwritten when
    new surfaces are added.
    """
    num_surfaces[None] = 0


def add_surface(surface: Surface) -> int:
    """Add a surface to the scene.

    Args:
        surface: The surface description (kind, material id, transform).

    Returns:
        The index of the added surface.

    Raises:
        RuntimeError: If the maximum number of surfaces is exceeded.
        ValueError: If the surface transform is not invertible.
    """
    idx = num_surfaces[None]
    if idx >= MAX_SURFACES:
        raise RuntimeError(f"Maximum number of surfaces ({MAX_SURFACES}) exceeded")

    linear, _ = split_affine(surface.transform)
    inv_linear, inv_offset = split_affine(inverse(surface.transform))

    surface_kinds[idx] = int(surface.kind)
    surface_material_ids[idx] = surface.material_id
    surface_linears[idx] = ti.Matrix(linear.tolist())
    surface_inv_linears[idx] = ti.Matrix(inv_linear.tolist())
    surface_inv_offsets[idx] = inv_offset.tolist()
    num_surfaces[None] = idx + 1
    return idx


def get_surface_count() -> int:
    """Get the number of surfaces in the scene."""
    return int(num_surfaces[None])


@ti.func
def surface_intersect(index: ti.i32, origin: vec3, direction: vec3):
    """Intersect a ray with one stored surface.

    Returns:
        A tuple (hit, dist) with dist in world units.
    """
    hit = 0
    dist = 0.0
    if surface_kinds[index] == _SPHERE:
        hit, dist = intersect_sphere(
            surface_linears[index],
            surface_inv_linears[index],
            surface_inv_offsets[index],
            origin,
            direction,
        )
    return hit, dist


@ti.func
def surface_at(index: ti.i32, point: vec3):
    """Local shading frame of a stored surface at a point on it.

    Returns:
        A tuple (normal, material_id) with the outward unit normal.
    """
    normal = vec3(0.0, 0.0, 0.0)
    if surface_kinds[index] == _SPHERE:
        normal = sphere_normal(surface_inv_linears[index], surface_inv_offsets[index], point)
    return normal, surface_material_ids[index]


@ti.func
def intersect_scene(origin: vec3, direction: vec3):
    """Find the nearest surface hit along a ray.

    Ties go to the surface added first.

    Args:
        origin: Ray origin in world space.
        direction: Unit ray direction.

    Returns:
        A tuple (hit, index, dist) where index is the nearest surface and
        dist its distance. On a miss index is -1 and dist is T_MAX.
    """
    hit = 0
    nearest = -1
    nearest_dist = T_MAX

    for i in range(num_surfaces[None]):
        surface_hit, dist = surface_intersect(i, origin, direction)
        if surface_hit == 1 and dist < nearest_dist:
            hit = 1
            nearest = i
            nearest_dist = dist

    return hit, nearest, nearest_dist
