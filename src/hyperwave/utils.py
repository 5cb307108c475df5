from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def normalize(v: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Unit vector along `v`; the zero vector is returned unchanged."""
    arr = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0.0:
        return arr.copy()
    return arr / norm


def normalize_rows(a: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Row-wise `normalize` for an (N, k) array."""
    arr = np.asarray(a, dtype=np.float64)
    norms = np.linalg.norm(arr, axis=-1, keepdims=True)
    safe = np.where(norms == 0.0, 1.0, norms)
    return arr / safe

