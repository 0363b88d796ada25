"""Material scattering model (BSDF).

Given an incident direction and the local normal, ``bsdf`` stochastically
picks one scattering event and returns the new direction with an energy
multiplier for the path throughput.

When the ray enters the surface, independent uniform draws are tested in
a fixed order:

    1. draw < Schlick(average_fresnel)  -> reflect
    2. draw < transmit                   -> transmit
    3. draw < metal                      -> absorb (path stops)
    4. otherwise                         -> diffuse

Each test uses a fresh draw, so the branch probabilities are not a
partition of one draw and the weights do not divide out the selection
probability.

When the ray is already inside the volume it exits: opaque materials let
it pass straight through; transparent ones refract out or reflect back
(chosen by Schlick's approximation), in both cases attenuated by
Beer-Lambert absorption over the distance travelled inside.

Reflect and transmit fall back to diffuse when the perturbed direction
ends up on the wrong side of the surface or refraction fails.
"""

import taichi as ti
import taichi.math as tm

from pbr.core.ray import (
    enters,
    invert,
    lerp,
    random_f32,
    reflected,
    refracted,
    sample_cone,
    sample_hemi_cos,
)
from pbr.materials.material import (
    material_absorbances,
    material_average_fresnels,
    material_colors,
    material_fresnels,
    material_glosses,
    material_lights,
    material_metals,
    material_refracts,
    material_transmits,
)

vec3 = tm.vec3

# Refractive index of the medium outside every surface
OUTSIDE_INDEX = 1.0


@ti.func
def schlick_r0(cos_x: ti.f32, r0: ti.f32) -> ti.f32:
    """Schlick's approximation ``R0 + (1 - R0)(1 - cos)^5``."""
    x = 1.0 - cos_x
    return r0 + (1.0 - r0) * x * x * x * x * x


@ti.func
def schlick(normal: vec3, incident: vec3, r0: ti.f32, n1: ti.f32, n2: ti.f32) -> ti.f32:
    """Fresnel reflectance by Schlick's approximation.

    If r0 is non-zero it is used directly with ``cos = -normal . incident``.
    Otherwise R0 is derived from the indices ``((n1 - n2) / (n1 + n2))^2``
    and, going from a denser to a thinner medium, the transmitted angle is
    used instead; beyond the critical angle the result is 1 (total internal
    reflection).

    Args:
        normal: Surface normal (unit length).
        incident: Incoming direction (unit length).
        r0: Reflectance at normal incidence, or 0 to derive it.
        n1: Index of the medium the ray travels in.
        n2: Index of the medium on the other side.

    Returns:
        Reflectance in [0, 1].
    """
    cos_x = -tm.dot(normal, incident)
    r = r0
    tir = 0
    if r0 == 0.0:
        r = (n1 - n2) / (n1 + n2)
        r *= r
        if n1 > n2:
            n = n1 / n2
            sin_t2 = n * n * (1.0 - cos_x * cos_x)
            if sin_t2 > 1.0:
                tir = 1
            else:
                cos_x = ti.sqrt(1.0 - sin_t2)

    result = 1.0
    if tir == 0:
        result = schlick_r0(cos_x, r)
    return result


@ti.func
def beers(dist: ti.f32, absorbance: vec3) -> vec3:
    """Beer-Lambert attenuation ``exp(-absorbance * dist)`` per channel."""
    return vec3(
        ti.exp(-absorbance.x * dist),
        ti.exp(-absorbance.y * dist),
        ti.exp(-absorbance.z * dist),
    )


@ti.func
def emit(material_id: ti.i32, normal: vec3, direction: vec3) -> vec3:
    """Emitted energy toward a viewer looking along direction.

    Returns:
        ``light * max(0, normal . -direction)``.
    """
    cos = ti.max(tm.dot(normal, invert(direction)), 0.0)
    return material_lights[material_id] * cos


# =============================================================================
# Scattering Events
# =============================================================================


@ti.func
def _diffuse(material_id: ti.i32, normal: vec3):
    return 1, sample_hemi_cos(normal), material_colors[material_id] / tm.pi


@ti.func
def _absorb(incident: vec3):
    return 0, incident, vec3(0.0, 0.0, 0.0)


@ti.func
def _reflect(material_id: ti.i32, normal: vec3, incident: vec3):
    spread = 1.0 - material_glosses[material_id]
    refl = sample_cone(reflected(incident, normal), spread)

    scattered = 1
    direction = refl
    weight = lerp(vec3(1.0, 1.0, 1.0), material_fresnels[material_id], material_metals[material_id])
    if enters(refl, normal):
        scattered, direction, weight = _diffuse(material_id, normal)
    return scattered, direction, weight


@ti.func
def _transmit(material_id: ti.i32, normal: vec3, incident: vec3):
    did_refract, refr = refracted(incident, normal, OUTSIDE_INDEX, material_refracts[material_id])

    scattered = 1
    direction = refr
    weight = vec3(1.0, 1.0, 1.0)
    if did_refract:
        spread = sample_cone(refr, 1.0 - material_glosses[material_id])
        if enters(spread, normal):
            direction = spread
    else:
        scattered, direction, weight = _diffuse(material_id, normal)
    return scattered, direction, weight


@ti.func
def _exit(material_id: ti.i32, normal: vec3, incident: vec3, dist: ti.f32):
    scattered = 1
    direction = incident
    weight = vec3(1.0, 1.0, 1.0)

    if material_transmits[material_id] != 0.0:
        index = material_refracts[material_id]
        weight = beers(dist, material_absorbances[material_id])
        inside_normal = invert(normal)
        direction = reflected(incident, inside_normal)

        if random_f32() >= schlick(normal, incident, 0.0, index, OUTSIDE_INDEX):
            exited, refr = refracted(incident, inside_normal, index, OUTSIDE_INDEX)
            if exited:
                direction = refr
                spread = sample_cone(refr, 1.0 - material_glosses[material_id])
                if not enters(spread, normal):
                    direction = spread
    return scattered, direction, weight


@ti.func
def bsdf(material_id: ti.i32, normal: vec3, incident: vec3, dist: ti.f32):
    """Sample one scattering event at a surface hit.

    Args:
        material_id: Index into the material table.
        normal: The outward surface normal at the hit (unit length).
        incident: The incoming ray direction (unit length).
        dist: Distance the ray travelled to reach the hit; used for
            volumetric absorption when exiting a transparent medium.

    Returns:
        A tuple (scattered, direction, weight) where scattered is 0 when
        the path is absorbed, direction is the new ray direction and
        weight multiplies the path throughput.
    """
    scattered = 1
    direction = incident
    weight = vec3(1.0, 1.0, 1.0)

    if enters(incident, normal):
        reflect_chance = schlick(normal, incident, material_average_fresnels[material_id], 0.0, 0.0)
        if random_f32() < reflect_chance:
            scattered, direction, weight = _reflect(material_id, normal, incident)
        elif random_f32() < material_transmits[material_id]:
            scattered, direction, weight = _transmit(material_id, normal, incident)
        elif random_f32() < material_metals[material_id]:
            scattered, direction, weight = _absorb(incident)
        else:
            scattered, direction, weight = _diffuse(material_id, normal)
    else:
        scattered, direction, weight = _exit(material_id, normal, incident, dist)

    return scattered, direction, weight
