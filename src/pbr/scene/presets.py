"""Ready-made scenes.

Each factory clears the material table, registers its materials, uploads
its spheres and returns the Scene together with a matching camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pbr.scene.presets import create_showcase_scene
    >>> from pbr.core.progressive import ProgressiveRenderer
    >>>
    >>> scene, camera = create_showcase_scene(width=320, height=180)
    >>> renderer = ProgressiveRenderer(camera, scene)
"""

import math

from pbr.camera.thin_lens import ThinLensCamera
from pbr.geometry.sphere import Sphere
from pbr.materials.material import Material, add_material, clear_materials
from pbr.scene.scene import Scene

# =============================================================================
# Simple Scene Parameters
# =============================================================================

# Plastic sphere colour and gloss
SIMPLE_SPHERE_COLOR = (1.0, 0.3, 0.4)
SIMPLE_SPHERE_GLOSS = 0.9

# Camera distance along +z
SIMPLE_CAMERA_DISTANCE = 3.0

# =============================================================================
# Showcase Scene Parameters
# =============================================================================

GROUND_RADIUS = 100.0
GROUND_COLOR = (0.6, 0.6, 0.55)

LIGHT_ENERGY = (4.0, 4.0, 3.6)

SHOWCASE_SPHERE_RADIUS = 0.5


def create_simple_scene(
    width: int = 320,
    height: int = 240,
    f_stop: float = math.inf,
) -> tuple[Scene, ThinLensCamera]:
    """A single glossy plastic sphere under the sky gradient.

    The sphere has radius 0.5 and sits at the origin; the camera looks at
    it from +z.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        f_stop: Camera f-number. Default is a pinhole.

    Returns:
        Tuple of (scene, camera).
    """
    clear_materials()
    plastic = add_material(Material.plastic(*SIMPLE_SPHERE_COLOR, SIMPLE_SPHERE_GLOSS))

    scene = Scene([Sphere.at_position(plastic, (0.0, 0.0, 0.0), 0.5)])
    camera = ThinLensCamera(
        width=width,
        height=height,
        f_stop=f_stop,
        position=(0.0, 0.0, SIMPLE_CAMERA_DISTANCE),
        target=(0.0, 0.0, 0.0),
    )
    return scene, camera


def create_showcase_scene(
    width: int = 480,
    height: int = 270,
    f_stop: float = 2.8,
) -> tuple[Scene, ThinLensCamera]:
    """One sphere of every material preset on a large diffuse ground.

    From left to right: glass, metal, an emitter, glossy plastic and a
    squashed matte ellipsoid. The camera focuses on the emitter in the
    middle so the outer spheres pick up some depth-of-field blur.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        f_stop: Camera f-number.

    Returns:
        Tuple of (scene, camera).
    """
    from pbr.core.transform import compose, rotation, scale, translation

    clear_materials()
    ground = add_material(Material.lambert(*GROUND_COLOR))
    glass = add_material(Material.glass(0.95, 0.98, 0.95, 1.0))
    gold = add_material(Material.metal_surface(1.0, 0.78, 0.34, 0.95))
    light = add_material(Material.light_source(*LIGHT_ENERGY))
    plastic = add_material(Material.plastic(0.2, 0.35, 0.9, 0.8))
    matte = add_material(Material.lambert(0.9, 0.5, 0.2))

    r = SHOWCASE_SPHERE_RADIUS
    ellipsoid = compose(
        translation(2.4, r * 0.6, -0.4),
        rotation((0.0, 0.0, math.pi / 6.0)),
        scale(1.3, 0.6, 1.0),
    )

    surfaces = [
        Sphere.at_position(ground, (0.0, -GROUND_RADIUS, 0.0), GROUND_RADIUS),
        Sphere.at_position(glass, (-2.4, r, -0.4), r),
        Sphere.at_position(gold, (-1.2, r, 0.3), r),
        Sphere.at_position(light, (0.0, r, 0.0), r),
        Sphere.at_position(plastic, (1.2, r, 0.3), r),
        Sphere(material_id=matte, transform=ellipsoid),
    ]
    scene = Scene(surfaces)

    camera = ThinLensCamera(
        width=width,
        height=height,
        f_stop=f_stop,
        position=(0.0, 1.2, 4.5),
        target=(0.0, r, 0.0),
    )
    return scene, camera
