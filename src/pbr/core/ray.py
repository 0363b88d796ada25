"""Ray data structure, vector algebra and directional optics.

This module provides the Ray dataclass together with the direction
operations the material model and camera are built on: reflection,
refraction (Snell's law), cone perturbation around an axis and
cosine-weighted hemisphere sampling.

Every randomized routine takes its uniform draws as explicit arguments,
so it is a pure function of its inputs and reproducible for any draw.
Kernels feed these arguments from ``random_f32()`` / ``random_direction_sample()``,
which draw from Taichi's per-thread generator.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=7)
    >>> from pbr.core.ray import reflected, vec3
    >>> # Within a Taichi kernel:
    >>> # out = reflected(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared length below which a cross product is treated as degenerate
_PARALLEL_EPSILON = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The unit direction of the ray (vec3).
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at distance t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Algebra
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def unit(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Zero-length input produces non-finite components; callers are expected
    to pass non-degenerate vectors.
    """
    return v / tm.length(v)


@ti.func
def invert(v: vec3) -> vec3:
    return -v


@ti.func
def lerp(a: vec3, b: vec3, n: ti.f32) -> vec3:
    """Linearly interpolate from a (n = 0) to b (n = 1)."""
    m = 1.0 - n
    return a * m + b * n


@ti.func
def average(v: vec3) -> ti.f32:
    return (v.x + v.y + v.z) / 3.0


@ti.func
def max_component(v: vec3) -> ti.f32:
    return ti.max(v.x, ti.max(v.y, v.z))


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis whose third axis is the given normal.

    Args:
        normal: The axis of the basis (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal).
    """
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def basis_around(axis: vec3, q: vec3):
    """Build an orthonormal basis around axis from an independent direction q.

    The first tangent is ``axis x q``; if q is parallel to the axis the
    basis falls back to ``build_onb_from_normal``.

    Returns:
        A tuple (s, t) of unit vectors perpendicular to axis and each other.
    """
    s = tm.cross(axis, q)
    t = vec3(0.0, 0.0, 0.0)
    if length_squared(s) < _PARALLEL_EPSILON:
        s, t, _ = build_onb_from_normal(axis)
    else:
        s = tm.normalize(s)
        t = tm.normalize(tm.cross(axis, s))
    return s, t


# =============================================================================
# Directional Optics
# =============================================================================


@ti.func
def enters(direction: vec3, normal: vec3) -> ti.i32:
    """Check whether a direction points into the surface.

    Returns:
        1 if normal . direction < 0 (the ray is entering), 0 otherwise.
    """
    result = 0
    if tm.dot(normal, direction) < 0.0:
        result = 1
    return result


@ti.func
def reflected(direction: vec3, normal: vec3) -> vec3:
    """Mirror-reflect a direction about a normal.

    Computes ``d' = d - 2(n . d)n`` and renormalizes the result.

    Args:
        direction: The incoming direction (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected unit direction.
    """
    cos = tm.dot(normal, direction)
    return unit(direction - normal * (2.0 * cos))


@ti.func
def refracted(direction: vec3, normal: vec3, index_a: ti.f32, index_b: ti.f32):
    """Refract a direction through a surface using Snell's law.

    The normal must face the incoming side (``normal . direction < 0``).
    With ``ratio = index_a / index_b`` and ``cos = normal . direction``,
    the discriminant is ``k = 1 - ratio^2 (1 - cos^2)``.

    Args:
        direction: The incoming unit direction.
        normal: The unit normal on the incoming side.
        index_a: Refractive index of the medium the ray travels in.
        index_b: Refractive index of the medium the ray enters.

    Returns:
        A tuple (refracted, new_direction). When k < 0 (total internal
        reflection) refracted is 0 and new_direction is the original
        direction unchanged; otherwise refracted is 1 and new_direction is
        the unit refracted direction.
    """
    ratio = index_a / index_b
    cos = tm.dot(normal, direction)
    k = 1.0 - ratio * ratio * (1.0 - cos * cos)
    did_refract = 0
    result = direction
    if k >= 0.0:
        offset = normal * (ratio * cos + ti.sqrt(k))
        result = unit(direction * ratio - offset)
        did_refract = 1
    return did_refract, result


@ti.func
def angle_direction(theta: ti.f32, phi: ti.f32) -> vec3:
    """Direction from an azimuth theta and an elevation phi (y is up)."""
    return vec3(
        ti.cos(theta) * ti.cos(phi),
        ti.sin(phi),
        ti.sin(theta) * ti.cos(phi),
    )


@ti.func
def random_direction(u: ti.f32, v: ti.f32) -> vec3:
    """Map two uniform draws in [0, 1) to a direction uniform on the sphere."""
    return angle_direction(u * 2.0 * tm.pi, ti.asin(v * 2.0 - 1.0))


@ti.func
def cone(direction: vec3, spread: ti.f32, u: ti.f32, v: ti.f32, q: vec3) -> vec3:
    """Perturb a direction within a cone around itself.

    The polar angle is ``spread * pi/2 * (1 - 2 acos(u) / pi)``, which is
    biased toward the axis; the azimuth is ``2 pi v``. spread = 0 leaves the
    direction unchanged, spread = 1 covers the hemisphere around it.

    Args:
        direction: The cone axis (unit length).
        spread: Cone size in [0, 1].
        u: Uniform draw in [0, 1) selecting the polar angle.
        v: Uniform draw in [0, 1) selecting the azimuth.
        q: An independent random unit direction used to build the basis.

    Returns:
        The perturbed unit direction.
    """
    theta = spread * 0.5 * tm.pi * (1.0 - (2.0 * ti.acos(u) / tm.pi))
    m1 = ti.sin(theta)
    m2 = ti.cos(theta)
    a2 = v * 2.0 * tm.pi
    s, t = basis_around(direction, q)
    d = s * (m1 * ti.cos(a2)) + t * (m1 * ti.sin(a2)) + direction * m2
    return unit(d)


@ti.func
def random_hemi_cos(normal: vec3, u: ti.f32, v: ti.f32, q: vec3) -> vec3:
    """Cosine-weighted direction on the hemisphere around normal.

    The density is ``cos(theta) / pi``; the pi normalization is carried by
    the diffuse weight of the material rather than divided out here.

    Args:
        normal: The hemisphere axis (unit length).
        u: Uniform draw in [0, 1) selecting the radius on the unit disk.
        v: Uniform draw in [0, 1) selecting the azimuth.
        q: An independent random unit direction used to build the basis.

    Returns:
        A unit direction with ``dot(result, normal) >= 0``.
    """
    r = ti.sqrt(u)
    theta = v * 2.0 * tm.pi
    s, t = basis_around(normal, q)
    return s * (r * ti.cos(theta)) + t * (r * ti.sin(theta)) + normal * ti.sqrt(1.0 - u)


# =============================================================================
# Task-local Random Draws
# =============================================================================


@ti.func
def random_f32() -> ti.f32:
    """Uniform draw in [0, 1) from the calling thread's generator."""
    return ti.random(ti.f32)


@ti.func
def random_direction_sample() -> vec3:
    """Uniform random direction from the calling thread's generator."""
    return random_direction(random_f32(), random_f32())


@ti.func
def sample_cone(direction: vec3, spread: ti.f32) -> vec3:
    """``cone`` with draws taken from the calling thread's generator."""
    u = random_f32()
    v = random_f32()
    return cone(direction, spread, u, v, random_direction_sample())


@ti.func
def sample_hemi_cos(normal: vec3) -> vec3:
    """``random_hemi_cos`` with draws taken from the calling thread's generator."""
    u = random_f32()
    v = random_f32()
    return random_hemi_cos(normal, u, v, random_direction_sample())
