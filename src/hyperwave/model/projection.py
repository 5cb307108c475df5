"""
Perspective projection from 4D to 3D.

Points are divided by ``w_factor = 1 + w * projection_factor``. Near the pole
(``w = -1 / projection_factor``) points race off to infinity and flip sign;
that is left alone. Only results that are not finite are dropped for the
frame, reported through the visibility mask.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def project(p: npt.ArrayLike, projection_factor: float) -> tuple[npt.NDArray[np.float64], float]:
    """
    Project one 4D point.

    Returns:
        The 3D position and the depth hint (`w_factor`). At the exact pole the
        position is non-finite; callers drop such particles.
    """
    p = np.asarray(p, dtype=np.float64)
    w_factor = 1.0 + p[3] * projection_factor
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        position = p[:3] / w_factor
    return position, float(w_factor)


def project_points(
    points: npt.ArrayLike, projection_factor: float
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """
    Vectorized projection of an (N, 4) array.

    Returns:
        positions: (N, 3); rows of dropped particles are zeroed.
        depth: (N,) `w_factor` per particle.
        visible: (N,) False where the projected position was not finite.
    """
    p = np.asarray(points, dtype=np.float64)
    w_factor = 1.0 + p[:, 3] * projection_factor
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        positions = p[:, :3] / w_factor[:, None]

    visible = np.all(np.isfinite(positions), axis=1)
    if not visible.all():
        positions[~visible] = 0.0
        logger.debug(f"Dropped {int((~visible).sum())} particles at the projection pole.")
    return positions, w_factor, visible
