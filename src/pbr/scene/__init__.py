"""Scene module: surface storage, nearest-hit queries and preset scenes.

Scene data is organized for efficient GPU access in Structure-of-Arrays
Taichi fields; surfaces reference materials by index.
"""

from .intersection import (
    MAX_SURFACES,
    T_MAX,
    add_surface,
    clear_scene,
    get_surface_count,
    intersect_scene,
    surface_at,
    surface_intersect,
)
from .presets import create_showcase_scene, create_simple_scene
from .scene import UP, Scene, environment

__all__ = [
    # Intersection module
    "MAX_SURFACES",
    "T_MAX",
    "add_surface",
    "clear_scene",
    "get_surface_count",
    "surface_intersect",
    "surface_at",
    "intersect_scene",
    # Scene
    "Scene",
    "UP",
    "environment",
    # Presets
    "create_simple_scene",
    "create_showcase_scene",
]
