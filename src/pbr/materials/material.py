"""Physically parameterized surface material and the GPU material table.

A Material describes how a surface scatters and emits light:

    color     Diffuse albedo for opaque surfaces, transmission tint for
              transparent ones.
    fresnel   Reflectivity at normal incidence per channel. Also sets the
              refractive index of the medium.
    light     Self-emission.
    transmit  0 = opaque, 1 = transparent.
    gloss     Microsurface polish. 1 = mirror-sharp, 0 = fully spread.
    metal     0 = dielectric, 1 = conductor.

Three fields are derived once at construction and never change:

    average_fresnel  mean(fresnel), floored at 0.02
    absorbance       2 - log10(100 * color) per channel (Beer-Lambert)
    refract          (1 + sqrt(F)) / (1 - sqrt(F)) with F = average_fresnel

Materials are registered into preallocated Taichi fields with
``add_material`` and referenced by surfaces through the returned index.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.materials.material import Material, add_material
    >>> red = add_material(Material.plastic(1.0, 0.3, 0.4, gloss=0.9))
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Color = tuple[float, float, float]

# Lowest average Fresnel reflectance a material may have
MIN_FRESNEL = 0.02


def _absorbance(color: Color) -> Color:
    """Beer-Lambert absorbance per channel; a zero channel absorbs fully."""
    with np.errstate(divide="ignore"):
        values = 2.0 - np.log10(np.asarray(color, dtype=np.float64) * 100.0)
    return (float(values[0]), float(values[1]), float(values[2]))


def _refractive_index(average_fresnel: float) -> float:
    root = math.sqrt(average_fresnel)
    if root >= 1.0:
        return math.inf
    return (1.0 + root) / (1.0 - root)


@dataclass(frozen=True)
class Material:
    """Immutable material description with cached derived fields.

    Attributes:
        color: Diffuse albedo or transmission tint (RGB).
        fresnel: Reflectivity at normal incidence (RGB, each in [0, 1]).
        light: Emitted radiance (RGB, non-negative).
        transmit: Opacity-to-transparency mix in [0, 1].
        gloss: Polish in [0, 1]; reflections spread over a cone of size
            ``1 - gloss``.
        metal: Dielectric-to-conductor mix in [0, 1].
        average_fresnel: Derived, see module docstring.
        absorbance: Derived, see module docstring.
        refract: Derived refractive index.
    """

    color: Color = (0.0, 0.0, 0.0)
    fresnel: Color = (0.0, 0.0, 0.0)
    light: Color = (0.0, 0.0, 0.0)
    transmit: float = 0.0
    gloss: float = 0.0
    metal: float = 0.0

    average_fresnel: float = field(init=False, repr=False)
    absorbance: Color = field(init=False, repr=False)
    refract: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        for name in ("transmit", "gloss", "metal"):
            value = getattr(self, name)
            if value < 0.0 or value > 1.0:
                raise ValueError(f"Material {name} = {value} is outside [0, 1].")

        for i, component in enumerate(self.fresnel):
            if component < 0.0 or component > 1.0:
                raise ValueError(f"Fresnel component {i} = {component} is outside [0, 1].")

        for i, component in enumerate(self.color):
            if component < 0.0:
                raise ValueError(f"Color component {i} = {component} is negative.")

        for i, component in enumerate(self.light):
            if component < 0.0:
                raise ValueError(f"Light component {i} = {component} is negative.")

        average_fresnel = max(sum(self.fresnel) / 3.0, MIN_FRESNEL)
        object.__setattr__(self, "average_fresnel", average_fresnel)
        object.__setattr__(self, "absorbance", _absorbance(self.color))
        object.__setattr__(self, "refract", _refractive_index(average_fresnel))

    # =========================================================================
    # Presets
    # =========================================================================

    @classmethod
    def light_source(cls, r: float, g: float, b: float) -> Material:
        """A pure emitter with no diffuse response."""
        return cls(light=(r, g, b))

    @classmethod
    def plastic(cls, r: float, g: float, b: float, gloss: float) -> Material:
        """Coloured diffuse base under a thin clear-coat reflection."""
        return cls(color=(r, g, b), fresnel=(0.04, 0.04, 0.04), gloss=gloss)

    @classmethod
    def lambert(cls, r: float, g: float, b: float) -> Material:
        return cls(color=(r, g, b), fresnel=(0.02, 0.02, 0.02))

    @classmethod
    def metal_surface(cls, r: float, g: float, b: float, gloss: float) -> Material:
        """A conductor whose reflection is tinted by (r, g, b)."""
        return cls(fresnel=(r, g, b), gloss=gloss, metal=1.0)

    @classmethod
    def glass(cls, r: float, g: float, b: float, gloss: float) -> Material:
        """A transparent dielectric with transmission tint (r, g, b)."""
        return cls(color=(r, g, b), fresnel=(0.042, 0.042, 0.042), transmit=1.0, gloss=gloss)


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fresnels = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_lights = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_transmits = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_glosses = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_metals = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_average_fresnels = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_absorbances = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_refracts = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the material table.

    Args:
        material: The material to register.

    Returns:
        The index of the added material, used as the surface's material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_colors[idx] = list(material.color)
    material_fresnels[idx] = list(material.fresnel)
    material_lights[idx] = list(material.light)
    material_transmits[idx] = material.transmit
    material_glosses[idx] = material.gloss
    material_metals[idx] = material.metal
    material_average_fresnels[idx] = material.average_fresnel
    material_absorbances[idx] = list(material.absorbance)
    material_refracts[idx] = material.refract
    num_materials[None] = idx + 1

    logger.debug("Registered material %d: %r", idx, material)
    return idx


def get_material_count() -> int:
    """Get the number of materials in the table."""
    return int(num_materials[None])
