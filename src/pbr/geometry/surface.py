"""Surface intersection contract.

Any geometric primitive the scene can hold provides two capabilities:

    intersect(ray)  -> (hit, distance)   distance in world units, hits
                                         closer than BIAS are rejected
    at(point)       -> (normal, material_id)

Surfaces are a closed set of kinds. On the Python side each surface is a
small description object (see ``Surface``); on the kernel side the scene
dispatches on ``SurfaceKind`` to the matching intersect / at functions.
"""

from enum import IntEnum
from typing import Protocol

import numpy as np
import numpy.typing as npt

# Minimum hit distance (world units); suppresses self-intersection at the
# origin of a bounced ray
BIAS = 1e-4


class SurfaceKind(IntEnum):
    """Enumeration of supported surface geometries."""

    SPHERE = 0


class Surface(Protocol):
    """Python-side description of a surface placed in the scene.

    Attributes:
        kind: The geometry kind used for kernel dispatch.
        material_id: Index of the surface's material in the material table.
        transform: 4x4 object-to-world affine transform.
    """

    @property
    def kind(self) -> SurfaceKind: ...

    @property
    def material_id(self) -> int: ...

    @property
    def transform(self) -> npt.NDArray[np.float64]: ...
