"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens camera with depth of field

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: top to bottom across image
"""

from .thin_lens import (
    ThinLensCamera,
    aperture_point,
    get_camera_info,
    get_ray,
    is_pinhole,
    lens_ray,
    sensor_point,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "sensor_point",
    "aperture_point",
    "lens_ray",
    "get_ray",
    "get_camera_info",
    "is_pinhole",
]
