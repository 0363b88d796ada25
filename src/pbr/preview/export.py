"""Image export utilities for rendered images.

Converts the per-pixel accumulator (running sums and counts) into a linear
image, applies clamping and gamma correction, and writes 8-bit PNG files
through Pillow.

Example:
    >>> from pbr.preview.export import save_png
    >>> from pbr.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(camera, scene)
    >>> renderer.render(100)
    >>> save_png(renderer, "output.png", gamma=2.2)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from pbr.core.progressive import ProgressiveRenderer
    from pbr.core.sampler import Sampler

logger = logging.getLogger(__name__)


def image_from_accumulator(
    sums: npt.NDArray[np.floating],
    counts: npt.NDArray[np.integer],
) -> npt.NDArray[np.float32]:
    """Divide running sums by their sample counts.

    Args:
        sums: Energy sums of shape (H, W, 3).
        counts: Sample counts of shape (H, W).

    Returns:
        Linear float32 image of shape (H, W, 3); pixels without samples
        are black.

    Raises:
        ValueError: If the shapes do not line up.
    """
    if sums.ndim != 3 or sums.shape[2] != 3 or sums.shape[:2] != counts.shape:
        raise ValueError(f"Accumulator shapes do not match: {sums.shape} vs {counts.shape}")

    counts_f = counts.astype(np.float64)[..., np.newaxis]
    image = np.divide(
        sums.astype(np.float64),
        counts_f,
        out=np.zeros(sums.shape, dtype=np.float64),
        where=counts_f > 0,
    )
    return image.astype(np.float32)


def to_uint8(image: npt.NDArray[np.floating], gamma: float = 2.2) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit.

    Clamps to [0, 1], applies ``x ** (1 / gamma)`` and scales to 0..255.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    clamped = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    corrected = np.power(clamped, 1.0 / gamma)
    return (corrected * 255.0 + 0.5).astype(np.uint8)


def save_png(
    source: Sampler | ProgressiveRenderer,
    filepath: str | Path,
    *,
    gamma: float = 2.2,
) -> Path:
    """Save the mean image of a sampler or progressive renderer as PNG.

    Args:
        source: A Sampler, or a ProgressiveRenderer wrapping one.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 2.2 for sRGB).

    Returns:
        The path written.
    """
    sampler = getattr(source, "sampler", source)
    return save_png_from_array(sampler.get_image_numpy(), filepath, gamma=gamma)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    *,
    gamma: float = 2.2,
) -> Path:
    """Save a linear (H, W, 3) image as an 8-bit PNG file."""
    path = Path(filepath)
    pil_image = PILImage.fromarray(to_uint8(image, gamma=gamma))
    pil_image.save(path)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], path)
    return path
