import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from hyperwave.model.params import SimulationParams


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def small_params() -> SimulationParams:
    return SimulationParams(resolution=3)
