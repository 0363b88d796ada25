"""Materials module.

Components:
    material: Immutable Material values and the GPU material table
    bsdf: Stochastic scattering (reflect, transmit, absorb, diffuse, exit)
"""

from .bsdf import OUTSIDE_INDEX, beers, bsdf, emit, schlick, schlick_r0
from .material import (
    MAX_MATERIALS,
    MIN_FRESNEL,
    Material,
    add_material,
    clear_materials,
    get_material_count,
)

__all__ = [
    "Material",
    "MAX_MATERIALS",
    "MIN_FRESNEL",
    "add_material",
    "clear_materials",
    "get_material_count",
    "OUTSIDE_INDEX",
    "schlick_r0",
    "schlick",
    "beers",
    "emit",
    "bsdf",
]
