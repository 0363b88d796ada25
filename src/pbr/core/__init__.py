"""Core rendering module.

Components:
    ray: Ray data structure, vector algebra and directional optics
    energy: RGB energy helpers and Russian roulette
    transform: Affine transform construction and application
    sampler: Path integrator and per-pixel sample accumulator
    progressive: Batched progressive rendering on top of a Sampler

All compute-intensive operations use Taichi kernels.
"""

from .energy import amplified, merged, random_gain, strength
from .ray import (
    Ray,
    angle_direction,
    average,
    basis_around,
    build_onb_from_normal,
    cone,
    enters,
    invert,
    length_squared,
    lerp,
    make_ray,
    max_component,
    random_direction,
    random_hemi_cos,
    ray_at,
    reflected,
    refracted,
    unit,
    vec3,
)
from .transform import (
    compose,
    identity,
    inverse,
    look_at,
    rotation,
    scale,
    split_affine,
    transform_direction,
    transform_point,
    transform_vector,
    translation,
)

# Note: sampler and progressive are NOT imported here to avoid circular imports.
# Import directly from pbr.core.sampler or pbr.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "unit",
    "invert",
    "lerp",
    "average",
    "max_component",
    "build_onb_from_normal",
    "basis_around",
    "enters",
    "reflected",
    "refracted",
    "angle_direction",
    "random_direction",
    "cone",
    "random_hemi_cos",
    "merged",
    "amplified",
    "strength",
    "random_gain",
    "identity",
    "translation",
    "scale",
    "rotation",
    "look_at",
    "compose",
    "inverse",
    "split_affine",
    "transform_point",
    "transform_vector",
    "transform_direction",
]
