"""
Lattice Generation
==================
Produces the static base coordinates every particle derives from.

Enumeration order is nested axis iteration with the first axis outermost, so
particle index ``i`` always maps to the same coordinate for a given resolution:
for the hypercube, ``i = ((ix * n + iy) * n + iz) * n + iw``.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from hyperwave.model.params import LatticeShape, SceneMode

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

AXIS_MIN = -1.0
AXIS_MAX = 1.0


def axis_values(n: int) -> npt.NDArray[np.float64]:
    """
    Evenly spaced values over [AXIS_MIN, AXIS_MAX].

    Raises:
        ValueError: If `n` is not an integer >= 2.
    """
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise ValueError(f"Lattice resolution must be an integer, got {n!r}.")
    if n < 2:
        raise ValueError(f"Lattice resolution must be >= 2, got {n}.")
    return np.linspace(AXIS_MIN, AXIS_MAX, int(n))


def _grid(n: int, dims: int) -> npt.NDArray[np.float64]:
    values = axis_values(n)
    # indexing="ij" keeps the first axis outermost in the flattened order
    mesh = np.meshgrid(*([values] * dims), indexing="ij")
    points = np.stack([m.ravel() for m in mesh], axis=-1)
    points.setflags(write=False)
    return points


def generate_hypercube(n: int) -> npt.NDArray[np.float64]:
    """Return the (n^4, 4) hypercube lattice."""
    return _grid(n, 4)


def generate_cube(n: int) -> npt.NDArray[np.float64]:
    """Return the (n^3, 3) cube lattice."""
    return _grid(n, 3)


def generate_wave_volume(n: int) -> npt.NDArray[np.float64]:
    """
    Return an (n^3, 4) lattice: a cube in xyz whose w coordinate is the
    standing wave sin(pi x) * sin(pi y) * sin(pi z).
    """
    cube = generate_cube(n)
    w = np.sin(np.pi * cube[:, 0]) * np.sin(np.pi * cube[:, 1]) * np.sin(np.pi * cube[:, 2])
    points = np.column_stack([cube, w])
    points.setflags(write=False)
    return points


def generate_lattice(mode: SceneMode, n: int,
                     shape: LatticeShape = LatticeShape.HYPERCUBE) -> npt.NDArray[np.float64]:
    """
    Generate the base lattice for a scene mode.

    Args:
        mode: Scene mode; Indra's net always uses the 3D cube lattice.
        n: Points per axis (>= 2).
        shape: Lattice variant for the 4D-wave mode.

    Returns:
        Read-only array of base coordinates, one row per particle.
    """
    if mode == SceneMode.INDRAS_NET:
        points = generate_cube(n)
    elif shape == LatticeShape.WAVE_VOLUME:
        points = generate_wave_volume(n)
    else:
        points = generate_hypercube(n)
    logger.debug(f"Generated {mode} lattice ({shape}) with n={n}: {len(points)} points.")
    return points
