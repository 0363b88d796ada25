"""Monte Carlo path integrator and per-pixel sample accumulator.

Each traced path starts at the camera and repeats, up to a bounce limit:

    1. intersect the scene; on a miss add ``signal * env`` and stop
    2. add the emission of the hit surface weighted by the throughput
    3. Russian roulette on the throughput; stop if it fails
    4. scatter through the material BSDF; stop if absorbed, otherwise
       multiply the throughput by the BSDF weight and continue

Every sample adds its energy to a running per-pixel sum and increments the
pixel's count, so the mean (sum / count) can be refined at any time by
drawing more samples, in one call or many.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pbr.core.sampler import Sampler, SamplerConfig
    >>> from pbr.scene.presets import create_simple_scene
    >>>
    >>> scene, camera = create_simple_scene(width=64, height=48)
    >>> sampler = Sampler(camera, scene, SamplerConfig(max_bounces=8))
    >>> sampler.sample_image(16)
    >>> image = sampler.get_image_numpy()
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pbr.camera.thin_lens import ThinLensCamera, get_ray, setup_camera
from pbr.core.energy import merged, random_gain, strength
from pbr.core.ray import random_f32
from pbr.materials.bsdf import bsdf, emit
from pbr.scene.intersection import intersect_scene, surface_at
from pbr.scene.scene import Scene, environment

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class SamplerConfig:
    """Path tracing settings.

    Attributes:
        max_bounces: Maximum number of surface interactions per path.
        jitter: Offset each primary sample uniformly within its pixel.
            When False every sample goes through the pixel centre.
    """

    max_bounces: int = 10
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_bounces < 1:
            raise ValueError(f"max_bounces must be at least 1, got {self.max_bounces}")


@dataclass
class Sample:
    """Accumulated energy of one pixel.

    Attributes:
        red: Sum of the red channel over all samples.
        green: Sum of the green channel over all samples.
        blue: Sum of the blue channel over all samples.
        count: Number of samples drawn.
    """

    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0
    count: int = 0

    def mean(self) -> tuple[float, float, float]:
        """Per-channel mean, or black when no sample has been drawn."""
        if self.count == 0:
            return (0.0, 0.0, 0.0)
        return (self.red / self.count, self.green / self.count, self.blue / self.count)


# =============================================================================
# Render Target (Sample Accumulator)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024

# Running energy sums and sample counts, indexed [x, y] with y = 0 at the top
_sample_sums = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_counts = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Validate the image size against the accumulator and zero it.

    Raises:
        ValueError: If the size is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Zero every sum and count."""
    _sample_sums.fill(0.0)
    _sample_counts.fill(0)


def release_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Create a Sampler first.")


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace(u: ti.f32, v: ti.f32, max_bounces: ti.i32) -> vec3:
    """Trace one path through image coordinate (u, v).

    Args:
        u: Horizontal image coordinate in [0, 1] (left to right).
        v: Vertical image coordinate in [0, 1] (top to bottom).
        max_bounces: Maximum number of surface interactions.

    Returns:
        The energy carried back to the camera by this path.
    """
    ray = get_ray(u, v)
    origin = ray.origin
    direction = ray.direction

    energy = vec3(0.0, 0.0, 0.0)
    signal = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_bounces):
        if active == 1:
            hit, index, dist = intersect_scene(origin, direction)

            if hit == 0:
                energy = merged(energy, environment(direction), signal)
                active = 0
            else:
                point = origin + direction * dist
                normal, material_id = surface_at(index, point)
                energy = merged(energy, emit(material_id, normal, direction), signal)

                survived, gained = random_gain(signal, random_f32())
                if survived == 0:
                    active = 0
                else:
                    scattered, bounce, weight = bsdf(material_id, normal, direction, dist)
                    if scattered == 0:
                        active = 0
                    else:
                        signal = strength(gained, weight)
                        origin = point
                        direction = bounce

    return energy


@ti.func
def _accumulate(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32, max_bounces: ti.i32, jitter: ti.i32):
    """Draw one sample for pixel (x, y) and add it to the accumulator."""
    jx = 0.5
    jy = 0.5
    if jitter == 1:
        jx = random_f32()
        jy = random_f32()

    u = (ti.cast(x, ti.f32) + jx) / ti.cast(width, ti.f32)
    v = (ti.cast(y, ti.f32) + jy) / ti.cast(height, ti.f32)
    energy = trace(u, v, max_bounces)

    # A non-finite sample contributes nothing but still counts
    for c in ti.static(range(3)):
        if tm.isnan(energy[c]) or tm.isinf(energy[c]):
            energy[c] = 0.0

    _sample_sums[x, y] += energy
    _sample_counts[x, y] += 1


@ti.kernel
def _sample_image(width: ti.i32, height: ti.i32, max_bounces: ti.i32, jitter: ti.i32):
    for x, y in ti.ndrange(width, height):
        _accumulate(x, y, width, height, max_bounces, jitter)


@ti.kernel
def _sample_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    jitter: ti.i32,
):
    # Samples run in parallel; the accumulator updates are atomic
    for _ in range(samples):
        _accumulate(x, y, width, height, max_bounces, jitter)


@ti.kernel
def _trace_once(u: ti.f32, v: ti.f32, max_bounces: ti.i32) -> vec3:
    return trace(u, v, max_bounces)


# =============================================================================
# Public Sampler API
# =============================================================================


class Sampler:
    """Path-traces a scene through a camera into a per-pixel accumulator.

    Creating a Sampler uploads the camera and sizes the shared render
    target, so only the most recently created Sampler may draw samples.
    Its scene is uploaded again before drawing if another Scene has
    replaced it in the surface table.

    Attributes:
        camera: The camera configuration.
        scene: The uploaded scene.
        config: Path tracing settings.
    """

    def __init__(
        self,
        camera: ThinLensCamera,
        scene: Scene,
        config: SamplerConfig | None = None,
    ) -> None:
        """Upload the scene and camera and zero the accumulator.

        Raises:
            ValueError: If the image size exceeds the render target, or the
                scene references an unregistered material.
        """
        self.camera = camera
        self.scene = scene
        self.config = config if config is not None else SamplerConfig()

        setup_render_target(camera.width, camera.height)
        scene.upload()
        setup_camera(camera)

        logger.info(
            "Sampler ready: %dx%d, max_bounces=%d, jitter=%s",
            camera.width,
            camera.height,
            self.config.max_bounces,
            self.config.jitter,
        )

    @property
    def width(self) -> int:
        return self.camera.width

    @property
    def height(self) -> int:
        return self.camera.height

    def reset(self) -> None:
        """Discard every accumulated sample."""
        _check_render_target_initialized()
        clear_render_target()

    def trace(self, u: float, v: float) -> tuple[float, float, float]:
        """Trace a single path without accumulating it.

        Args:
            u: Horizontal image coordinate in [0, 1] (left to right).
            v: Vertical image coordinate in [0, 1] (top to bottom).

        Returns:
            Tuple of (R, G, B) energy.
        """
        _check_render_target_initialized()
        self.scene.ensure_uploaded()
        energy = _trace_once(u, v, self.config.max_bounces)
        return (float(energy[0]), float(energy[1]), float(energy[2]))

    def sample_pixel(self, x: int, y: int, samples: int = 1) -> None:
        """Add samples to one pixel.

        Args:
            x: Pixel column (0 = left).
            y: Pixel row (0 = top).
            samples: Number of paths to trace.

        Raises:
            ValueError: If the pixel lies outside the image.
            RuntimeError: If the render target has not been set up.
        """
        _check_render_target_initialized()
        self._check_pixel(x, y)
        if samples <= 0:
            return
        self.scene.ensure_uploaded()
        _sample_pixel(
            x,
            y,
            self.width,
            self.height,
            samples,
            self.config.max_bounces,
            int(self.config.jitter),
        )

    def sample_image(self, samples: int = 1) -> None:
        """Add samples to every pixel.

        Raises:
            RuntimeError: If the render target has not been set up.
        """
        _check_render_target_initialized()
        self.scene.ensure_uploaded()
        for _ in range(samples):
            _sample_image(self.width, self.height, self.config.max_bounces, int(self.config.jitter))
        logger.debug("Sampled %d spp over %dx%d", samples, self.width, self.height)

    def get_sample(self, x: int, y: int) -> Sample:
        """Read the accumulated sums and count of one pixel."""
        _check_render_target_initialized()
        self._check_pixel(x, y)
        total = _sample_sums[x, y]
        return Sample(
            red=float(total[0]),
            green=float(total[1]),
            blue=float(total[2]),
            count=int(_sample_counts[x, y]),
        )

    @property
    def sample_count(self) -> int:
        """Fewest samples drawn for any pixel of the image.

        This is the number of full passes made by sample_image(); extra
        samples added to single pixels with sample_pixel() do not raise it.
        """
        _check_render_target_initialized()
        _, counts = self.get_accumulator_numpy()
        return int(counts.min())

    def get_accumulator_numpy(self) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.int32]]:
        """Get the raw sums and counts for the active image.

        Returns:
            Tuple of (sums, counts) with shapes (height, width, 3) and
            (height, width), row 0 at the top.
        """
        _check_render_target_initialized()
        sums = _sample_sums.to_numpy()[: self.width, : self.height, :]
        counts = _sample_counts.to_numpy()[: self.width, : self.height]
        return np.transpose(sums, (1, 0, 2)), np.transpose(counts, (1, 0))

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the per-pixel mean energy as a linear (height, width, 3) image."""
        from pbr.preview.export import image_from_accumulator

        sums, counts = self.get_accumulator_numpy()
        return image_from_accumulator(sums, counts)

    def _check_pixel(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def __repr__(self) -> str:
        return (
            f"Sampler(width={self.width}, height={self.height}, "
            f"max_bounces={self.config.max_bounces})"
        )
