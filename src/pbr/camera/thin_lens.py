"""Thin-lens camera model with depth of field.

The camera maps a normalized image coordinate (u, v) in [0, 1]^2 to a
point on the sensor behind the lens, picks a random point on the circular
aperture, and shoots a ray from that aperture point toward the spot where
the chief ray (through the lens centre) meets the plane of focus. Points
on the focal plane stay sharp; everything else blurs in proportion to the
aperture diameter ``lens / f_stop``.

Camera space looks down -z with +y up. The sensor sits at

    z = 1 / (1/lens - 1/focus)

(the thin-lens image distance) and is ``sensor`` tall and
``sensor * width / height`` wide. u runs left to right and v runs top to
bottom, so pixel (0, 0) is the top-left corner of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(width=320, height=240, position=(0.0, 0.0, 3.0))
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pbr.core.ray import Ray, make_ray, random_f32, unit
from pbr.core.transform import look_at, split_affine, transform_direction, transform_point

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Defaults describe a 35mm camera with a 50mm lens.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        lens: Focal length of the lens (world units).
        sensor: Sensor height (world units).
        f_stop: Aperture f-number. ``math.inf`` gives a pinhole camera.
        position: Camera position in world space.
        target: Point the camera looks at.
        focus: Distance to the plane of focus. Defaults to the distance
            from position to target.
    """

    width: int
    height: int
    lens: float = 0.050
    sensor: float = 0.024
    f_stop: float = 4.0
    position: tuple[float, float, float] = (0.0, 0.0, 1.0)
    target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    focus: float | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.lens <= 0.0 or self.sensor <= 0.0:
            raise ValueError("Lens focal length and sensor size must be positive")
        if self.f_stop <= 0.0:
            raise ValueError(f"f-stop must be positive, got {self.f_stop}")
        if self.focus_distance <= self.lens:
            raise ValueError(
                f"Focus distance {self.focus_distance} must be beyond the focal length {self.lens}"
            )

    @property
    def focus_distance(self) -> float:
        if self.focus is not None:
            return self.focus
        return float(np.linalg.norm(np.subtract(self.target, self.position)))

    @property
    def aperture(self) -> float:
        """Aperture diameter ``lens / f_stop`` (0 for a pinhole)."""
        return self.lens / self.f_stop

    @property
    def image_distance(self) -> float:
        """Lens-to-sensor distance for the configured focus."""
        return 1.0 / ((1.0 / self.lens) - (1.0 / self.focus_distance))

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera-to-world transform
_camera_linear = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())
_camera_offset = ti.Vector.field(3, dtype=ti.f32, shape=())

# Sensor extent (width, height) and lens-to-sensor distance
_sensor_extent = ti.Vector.field(2, dtype=ti.f32, shape=())
_image_distance = ti.field(dtype=ti.f32, shape=())

_aperture = ti.field(dtype=ti.f32, shape=())
_focus = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: ThinLensCamera) -> None:
    """Upload camera state to Taichi fields.

    Must be called before rendering and whenever the camera changes.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the look-at frame is degenerate.
    """
    linear, offset = split_affine(look_at(camera.position, camera.target))

    _camera_linear[None] = ti.Matrix(linear.tolist())
    _camera_offset[None] = offset.tolist()
    _sensor_extent[None] = [camera.sensor * camera.aspect_ratio, camera.sensor]
    _image_distance[None] = camera.image_distance
    _aperture[None] = camera.aperture
    _focus[None] = camera.focus_distance

    logger.debug(
        "Camera set up: %dx%d, lens=%s, f/%s, focus=%s",
        camera.width,
        camera.height,
        camera.lens,
        camera.f_stop,
        camera.focus_distance,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def sensor_point(u: ti.f32, v: ti.f32) -> vec3:
    """Camera-space sensor point for normalized image coordinates.

    The sensor image is inverted through the lens, so x is mirrored and
    the top of the image (v = 0) lies below the axis.
    """
    extent = _sensor_extent[None]
    x = (u - 0.5) * extent[0]
    y = (v - 0.5) * extent[1]
    return vec3(-x, y, _image_distance[None])


@ti.func
def aperture_point(diameter: ti.f32, u: ti.f32, v: ti.f32) -> vec3:
    """Area-uniform point on the lens disk from two uniform draws.

    Args:
        diameter: Aperture diameter.
        u: Uniform draw in [0, 1) selecting the angle.
        v: Uniform draw in [0, 1) selecting the radius.

    Returns:
        A camera-space point (x, y, 0) within ``diameter / 2`` of the axis.
    """
    t = 2.0 * tm.pi * u
    r = ti.sqrt(v) * diameter * 0.5
    return vec3(r * ti.cos(t), r * ti.sin(t), 0.0)


@ti.func
def lens_ray(u: ti.f32, v: ti.f32, lens_u: ti.f32, lens_v: ti.f32) -> Ray:
    """World-space camera ray for an image coordinate and an aperture sample.

    Args:
        u: Horizontal image coordinate in [0, 1] (left to right).
        v: Vertical image coordinate in [0, 1] (top to bottom).
        lens_u: Uniform draw for the aperture angle.
        lens_v: Uniform draw for the aperture radius.
    """
    straight = unit(-sensor_point(u, v))
    focal_pt = straight * (_focus[None] / -straight.z)
    lens_pt = aperture_point(_aperture[None], lens_u, lens_v)
    direction = unit(focal_pt - lens_pt)

    origin = transform_point(_camera_linear[None], _camera_offset[None], lens_pt)
    return make_ray(origin, transform_direction(_camera_linear[None], direction))


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Camera ray with the aperture sampled from the calling thread's generator."""
    lens_u = random_f32()
    lens_v = random_f32()
    return lens_ray(u, v, lens_u, lens_v)


def get_camera_info() -> dict[str, float | tuple[float, ...]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, forward, sensor extent, image distance,
        aperture and focus.
    """
    linear = _camera_linear[None]
    offset = _camera_offset[None]
    extent = _sensor_extent[None]
    return {
        "origin": (float(offset[0]), float(offset[1]), float(offset[2])),
        "forward": (float(-linear[0, 2]), float(-linear[1, 2]), float(-linear[2, 2])),
        "sensor": (float(extent[0]), float(extent[1])),
        "image_distance": float(_image_distance[None]),
        "aperture": float(_aperture[None]),
        "focus": float(_focus[None]),
    }


def is_pinhole(camera: ThinLensCamera) -> bool:
    """Whether the camera has no depth of field (zero aperture)."""
    return camera.aperture == 0.0 or math.isinf(camera.f_stop)
