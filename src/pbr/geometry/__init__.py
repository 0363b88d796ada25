"""Geometry module: the surface contract and its primitives."""

from .sphere import SPHERE_RADIUS, Sphere, intersect_sphere, sphere_normal
from .surface import BIAS, Surface, SurfaceKind

__all__ = [
    "BIAS",
    "Surface",
    "SurfaceKind",
    "SPHERE_RADIUS",
    "Sphere",
    "intersect_sphere",
    "sphere_normal",
]
