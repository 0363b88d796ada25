"""Sphere surface placed by an affine transform.

In object space the sphere is centred at the origin with diameter 1
(radius 0.5). An object-to-world transform positions, orients and scales
it, so ``Sphere.at_position(mat, center, radius)`` is the usual way to
place a round sphere and any other affine transform yields an ellipsoid.

Intersection happens in object space: the ray is moved by the inverse
transform, the nearest positive root of

    |o + t d|^2 = radius^2

is found, and the hit offset ``t d`` is mapped back through the forward
transform so the returned distance is in world units.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.geometry.sphere import Sphere
    >>> sphere = Sphere.at_position(0, center=(0.0, 0.0, -1.0), radius=0.5)
"""

from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pbr.core.transform import compose, identity, scale, transform_point, transform_vector, translation
from pbr.geometry.surface import BIAS, SurfaceKind

vec3 = tm.vec3
mat3 = tm.mat3

# Object-space radius of every sphere
SPHERE_RADIUS = 0.5


@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere surface referencing a material by index.

    Attributes:
        material_id: Index of the material in the material table.
        transform: 4x4 object-to-world transform of the unit-diameter sphere.
    """

    material_id: int
    transform: npt.NDArray[np.float64] = field(default_factory=identity)

    @property
    def kind(self) -> SurfaceKind:
        return SurfaceKind.SPHERE

    @classmethod
    def at_position(
        cls,
        material_id: int,
        center: tuple[float, float, float],
        radius: float,
    ) -> "Sphere":
        """Create a round sphere with the given world-space centre and radius.

        Raises:
            ValueError: If radius is not positive.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        diameter = 2.0 * radius
        return cls(
            material_id=material_id,
            transform=compose(translation(*center), scale(diameter, diameter, diameter)),
        )


@ti.func
def intersect_sphere(
    linear: mat3,
    inv_linear: mat3,
    inv_offset: vec3,
    origin: vec3,
    direction: vec3,
):
    """Test a world-space ray against a transformed sphere.

    Args:
        linear: Linear part of the object-to-world transform.
        inv_linear: Linear part of the world-to-object transform.
        inv_offset: Translation of the world-to-object transform.
        origin: Ray origin in world space.
        direction: Unit ray direction in world space.

    Returns:
        A tuple (hit, dist) where hit is 1 for the nearest intersection
        farther than BIAS and dist is its world-space distance.
    """
    local_origin = transform_point(inv_linear, inv_offset, origin)
    local_direction = tm.normalize(transform_vector(inv_linear, direction))

    op = -local_origin
    b = tm.dot(op, local_direction)
    det = b * b - tm.dot(op, op) + SPHERE_RADIUS * SPHERE_RADIUS

    hit = 0
    dist = 0.0
    if det >= 0.0:
        root = ti.sqrt(det)

        t1 = b - root
        if t1 > 0.0:
            d1 = tm.length(transform_vector(linear, local_direction * t1))
            if d1 > BIAS:
                hit = 1
                dist = d1

        if hit == 0:
            t2 = b + root
            if t2 > 0.0:
                d2 = tm.length(transform_vector(linear, local_direction * t2))
                if d2 > BIAS:
                    hit = 1
                    dist = d2

    return hit, dist


@ti.func
def sphere_normal(inv_linear: mat3, inv_offset: vec3, point: vec3) -> vec3:
    """Outward world-space normal of a transformed sphere at a surface point.

    The object-space normal is mapped with the inverse-transpose of the
    linear part so that non-uniform scales keep it perpendicular.
    """
    local = transform_point(inv_linear, inv_offset, point)
    return tm.normalize(inv_linear.transpose() @ tm.normalize(local))
