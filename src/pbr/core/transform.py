"""Affine transforms for placing surfaces and cameras.

Transforms are built on the Python side as 4x4 NumPy matrices acting on
column vectors (``p' = M @ [x, y, z, 1]``) and uploaded to Taichi fields as
a 3x3 linear part plus a translation. The kernel-side helpers below apply
such a (linear, offset) pair to points, vectors and directions.

Example:
    >>> from pbr.core.transform import compose, scale, split_affine, translation
    >>> m = compose(translation(0.0, 1.0, 0.0), scale(2.0, 2.0, 2.0))
    >>> linear, offset = split_affine(m)
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
mat3 = tm.mat3

Matrix4 = npt.NDArray[np.float64]

# World up axis used when orienting look-at frames
Y_AXIS = (0.0, 1.0, 0.0)


def identity() -> Matrix4:
    return np.eye(4, dtype=np.float64)


def translation(x: float, y: float, z: float) -> Matrix4:
    m = identity()
    m[:3, 3] = (x, y, z)
    return m


def scale(x: float, y: float, z: float) -> Matrix4:
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation(axis_angle: tuple[float, float, float]) -> Matrix4:
    """Rotation about an axis, with the angle (radians) given by its length.

    Args:
        axis_angle: Rotation vector. A zero vector yields the identity.

    Returns:
        The 4x4 rotation matrix.
    """
    v = np.asarray(axis_angle, dtype=np.float64)
    angle = float(np.linalg.norm(v))
    if angle == 0.0:
        return identity()

    x, y, z = v / angle
    c = math.cos(angle)
    s = math.sin(angle)
    t = 1.0 - c

    m = identity()
    m[:3, :3] = [
        [t * x * x + c, t * x * y - z * s, t * x * z + y * s],
        [t * x * y + z * s, t * y * y + c, t * y * z - x * s],
        [t * x * z - y * s, t * y * z + x * s, t * z * z + c],
    ]
    return m


def look_at(
    origin: tuple[float, float, float],
    target: tuple[float, float, float],
) -> Matrix4:
    """Camera-to-world frame at origin whose local -z axis faces target.

    The frame's local z axis points from target back toward origin, x is
    ``Y_AXIS x z`` and y completes the right-handed basis.

    Raises:
        ValueError: If origin equals target, or the view direction is
            parallel to the world up axis.
    """
    o = np.asarray(origin, dtype=np.float64)
    to = np.asarray(target, dtype=np.float64)

    forward = o - to
    norm = np.linalg.norm(forward)
    if norm == 0.0:
        raise ValueError(f"Look-at origin and target coincide at {tuple(o)}")
    forward = forward / norm

    right = np.cross(np.asarray(Y_AXIS), forward)
    right_norm = np.linalg.norm(right)
    if right_norm < 1e-12:
        raise ValueError("Look-at direction is parallel to the up axis")
    right = right / right_norm
    up = np.cross(forward, right)

    orient = identity()
    orient[:3, 0] = right
    orient[:3, 1] = up
    orient[:3, 2] = forward
    return compose(translation(*o), orient)


def compose(*matrices: Matrix4) -> Matrix4:
    """Multiply transforms left to right (the rightmost applies first)."""
    result = identity()
    for m in matrices:
        result = result @ m
    return result


def inverse(m: Matrix4) -> Matrix4:
    """Invert an affine transform.

    Raises:
        ValueError: If the transform is singular (e.g. a zero scale).
    """
    try:
        return np.linalg.inv(m)
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Transform is not invertible: {e}") from e


def split_affine(m: Matrix4) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Split a 4x4 affine matrix into (3x3 linear part, translation)."""
    return np.array(m[:3, :3]), np.array(m[:3, 3])


# =============================================================================
# Kernel-side application
# =============================================================================


@ti.func
def transform_point(linear: mat3, offset: vec3, p: vec3) -> vec3:
    return linear @ p + offset


@ti.func
def transform_vector(linear: mat3, v: vec3) -> vec3:
    """Apply only the linear part, preserving the vector's length change."""
    return linear @ v


@ti.func
def transform_direction(linear: mat3, v: vec3) -> vec3:
    return tm.normalize(linear @ v)
