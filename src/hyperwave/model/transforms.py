"""
4D Transform Engine
===================
Applies the interpolated affine transform followed by the two planar
rotations to 4D points.

Order is fixed: matrix first, then the XY rotation, then the ZW rotation.
The two rotations act on disjoint coordinate pairs and therefore commute;
the matrix step does not commute with them.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

IDENTITY4: npt.NDArray[np.float64] = np.eye(4, dtype=np.float64)
IDENTITY4.setflags(write=False)


def lerp_matrices(t1: npt.ArrayLike, t2: npt.ArrayLike, interp: float) -> npt.NDArray[np.float64]:
    """
    Element-wise linear interpolation between two 4x4 matrices.

    `interp` is not clamped: values outside [0, 1] extrapolate along the
    line through the two matrices.
    """
    a = np.asarray(t1, dtype=np.float64)
    b = np.asarray(t2, dtype=np.float64)
    return a + (b - a) * interp


def rotate_xy(points: npt.ArrayLike, angle: float) -> npt.NDArray[np.float64]:
    """Rotate the (x, y) pair of each 4D point by `angle`; z and w are untouched."""
    return _rotate_pair(points, angle, 0, 1)


def rotate_zw(points: npt.ArrayLike, angle: float) -> npt.NDArray[np.float64]:
    """Rotate the (z, w) pair of each 4D point by `angle`; x and y are untouched."""
    return _rotate_pair(points, angle, 2, 3)


def _rotate_pair(points: npt.ArrayLike, angle: float, i: int, j: int) -> npt.NDArray[np.float64]:
    out = np.array(points, dtype=np.float64)
    c = np.cos(angle)
    s = np.sin(angle)
    a = out[..., i].copy()
    b = out[..., j].copy()
    out[..., i] = c * a - s * b
    out[..., j] = s * a + c * b
    return out


def transform(
    base: npt.ArrayLike,
    t1: npt.ArrayLike,
    t2: npt.ArrayLike,
    interp: float,
    angle_xy: float,
    angle_zw: float,
) -> npt.NDArray[np.float64]:
    """
    Transform a single 4D point.

    Args:
        base: Base coordinate (x, y, z, w).
        t1: First affine transform (4x4).
        t2: Second affine transform (4x4).
        interp: Blend fraction, 0 = `t1`, 1 = `t2` (extrapolates outside [0, 1]).
        angle_xy: Accumulated rotation angle in the XY plane, radians.
        angle_zw: Accumulated rotation angle in the ZW plane, radians.

    Returns:
        The transformed 4D point.
    """
    m = lerp_matrices(t1, t2, interp)
    p = m @ np.asarray(base, dtype=np.float64)
    p = rotate_xy(p, angle_xy)
    return rotate_zw(p, angle_zw)


def transform_points(
    points: npt.ArrayLike,
    t1: npt.ArrayLike,
    t2: npt.ArrayLike,
    interp: float,
    angle_xy: float,
    angle_zw: float,
) -> npt.NDArray[np.float64]:
    """Vectorized `transform` over an (N, 4) array; row i depends only on input row i."""
    m = lerp_matrices(t1, t2, interp)
    p = np.asarray(points, dtype=np.float64) @ m.T
    p = rotate_xy(p, angle_xy)
    return rotate_zw(p, angle_zw)


def random_affine(rng: np.random.Generator, scale: float = 0.5) -> npt.NDArray[np.float64]:
    """
    A random 4x4 transform near the identity.

    Each entry is perturbed uniformly in [-scale, scale].
    """
    return IDENTITY4 + rng.uniform(-scale, scale, size=(4, 4))
