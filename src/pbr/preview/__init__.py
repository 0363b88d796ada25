"""Preview module for turning accumulated samples into images."""

from .export import image_from_accumulator, save_png, save_png_from_array, to_uint8

__all__ = [
    "image_from_accumulator",
    "to_uint8",
    "save_png",
    "save_png_from_array",
]
