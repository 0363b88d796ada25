"""Scene: an ordered collection of surfaces plus a background.

The Scene borrows a surface collection built elsewhere and uploads it to
the surface table for the duration of a render. It never modifies the
collection. Rays that escape every surface receive a vertical gradient
from black (looking down) to the sky colour (looking up).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.geometry.sphere import Sphere
    >>> from pbr.materials.material import Material, add_material
    >>> from pbr.scene.scene import Scene
    >>> white = add_material(Material.lambert(0.8, 0.8, 0.8))
    >>> scene = Scene([Sphere.at_position(white, (0.0, 0.0, 0.0), 1.0)])
    >>> hit, index, dist = scene.intersect((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
"""

import logging
import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from pbr.core.ray import lerp
from pbr.geometry.surface import Surface
from pbr.materials.material import get_material_count
from pbr.scene.intersection import add_surface, clear_scene, get_surface_count, intersect_scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# World up direction for the background gradient
UP = vec3(0.0, 1.0, 0.0)

# Colour at the top of the background gradient
_sky_color = ti.Vector.field(3, dtype=ti.f32, shape=())

# Result slots for Python-side queries
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())
_query_dist = ti.field(dtype=ti.f32, shape=())
_query_energy = ti.Vector.field(3, dtype=ti.f32, shape=())

# The Scene whose surfaces currently fill the surface table
_uploaded_scene = None


@ti.func
def environment(direction: vec3) -> vec3:
    """Background energy for a ray that escapes the scene.

    Returns:
        ``lerp(black, sky, max(0, (direction . UP + 0.5) / 1.5))``.
    """
    vertical = ti.max((tm.dot(direction, UP) + 0.5) / 1.5, 0.0)
    return lerp(vec3(0.0, 0.0, 0.0), _sky_color[None], vertical)


@ti.kernel
def _intersect_query(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
    hit, index, dist = intersect_scene(vec3(ox, oy, oz), tm.normalize(vec3(dx, dy, dz)))
    _query_hit[None] = hit
    _query_index[None] = index
    _query_dist[None] = dist


@ti.kernel
def _environment_query(dx: ti.f32, dy: ti.f32, dz: ti.f32):
    _query_energy[None] = environment(tm.normalize(vec3(dx, dy, dz)))


class Scene:
    """An ordered set of surfaces uploaded for rendering.

    Surfaces are tested in the order given; when two hits are equally near
    the earlier surface wins.

    Attributes:
        surfaces: The borrowed surface collection.
        sky: Colour at the top of the background gradient.
    """

    def __init__(
        self,
        surfaces: Sequence[Surface],
        sky: tuple[float, float, float] = (1.0, 1.0, 1.0),
    ) -> None:
        """Validate and upload surfaces to the scene table.

        Args:
            surfaces: Surfaces to render, in intersection-test order.
            sky: Background colour when looking straight up. Use
                (0, 0, 0) for a zero-radiance environment.

        Raises:
            ValueError: If a surface references an unregistered material,
                or its transform is not invertible.
            RuntimeError: If the surface table is full.
        """
        self.surfaces = surfaces
        self.sky = sky
        self.upload()
        logger.info("Scene created: %d surfaces, sky=%s", len(surfaces), sky)

    def upload(self) -> None:
        """Make this scene the one kernels trace against.

        Replaces the surface table and the sky colour. Material ids are
        checked against the current material table.

        Raises:
            ValueError: If a surface references an unregistered material,
                or its transform is not invertible.
            RuntimeError: If the surface table is full.
        """
        material_count = get_material_count()
        for i, surface in enumerate(self.surfaces):
            if not 0 <= surface.material_id < material_count:
                raise ValueError(
                    f"Surface {i} references material {surface.material_id}, "
                    f"but only {material_count} materials are registered"
                )

        clear_scene()
        for surface in self.surfaces:
            add_surface(surface)
        _sky_color[None] = list(self.sky)

        global _uploaded_scene
        _uploaded_scene = self
        logger.debug("Scene uploaded: %d surfaces", len(self.surfaces))

    def ensure_uploaded(self) -> None:
        """Upload this scene unless it already fills the surface table."""
        if _uploaded_scene is not self or get_surface_count() != len(self.surfaces):
            self.upload()

    def __len__(self) -> int:
        return len(self.surfaces)

    def intersect(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
    ) -> tuple[bool, int, float]:
        """Find the nearest hit along a ray from Python.

        Args:
            origin: Ray origin.
            direction: Ray direction (normalized before the query).

        Returns:
            Tuple of (hit, surface_index, distance). surface_index is -1 and
            distance is infinite when nothing is hit.
        """
        self.ensure_uploaded()
        _intersect_query(*origin, *direction)
        if _query_hit[None] == 0:
            return False, -1, math.inf
        return True, int(_query_index[None]), float(_query_dist[None])

    def env(self, direction: tuple[float, float, float]) -> tuple[float, float, float]:
        """Background energy seen along a direction."""
        self.ensure_uploaded()
        _environment_query(*direction)
        e = _query_energy[None]
        return (float(e[0]), float(e[1]), float(e[2]))

    def __repr__(self) -> str:
        return f"Scene(surfaces={len(self.surfaces)}, sky={self.sky})"
