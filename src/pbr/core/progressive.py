"""Progressive renderer for iterative sample accumulation.

This module wraps a Sampler with a convenient interface for renders that
refine over time:
- Batch rendering (multiple SPP per call)
- Progress callbacks and a generator interface for UI updates
- Reset and re-render

Because the accumulator keeps running sums and counts, rendering N samples
in one call and N samples over many calls estimate the same mean.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pbr.core.progressive import ProgressiveRenderer
    >>> from pbr.scene.presets import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> renderer = ProgressiveRenderer(camera, scene)
    >>> renderer.render(100)  # Render 100 SPP
    >>> image = renderer.get_image_numpy()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from pbr.camera.thin_lens import ThinLensCamera
from pbr.core.sampler import Sampler, SamplerConfig
from pbr.scene.scene import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    Attributes:
        sampler: The underlying Sampler that owns the accumulator.
    """

    def __init__(
        self,
        camera: ThinLensCamera,
        scene: Scene,
        config: SamplerConfig | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Raises:
            ValueError: If the image size exceeds the render target.
        """
        self.sampler = Sampler(camera, scene, config)

    @property
    def width(self) -> int:
        return self.sampler.width

    @property
    def height(self) -> int:
        return self.sampler.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self.sampler.sample_count

    def reset(self) -> None:
        """Clear the accumulator for a fresh render of the same scene."""
        self.sampler.reset()

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing
        buffer. Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self.sampler.sample_image(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

        logger.debug("Progressive render reached %d spp", target_samples)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Returns the mean energy clamped to [0, 1] and optionally gamma
        corrected. The array shape is (height, width, 3).

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        image = np.clip(self.sampler.get_image_numpy(), 0.0, 1.0)

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return image.astype(np.float32)

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit array, gamma corrected."""
        from pbr.preview.export import to_uint8

        return to_uint8(self.sampler.get_image_numpy(), gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
