import numpy as np
import pytest

from hyperwave.model.lattice import (
    AXIS_MAX,
    AXIS_MIN,
    generate_cube,
    generate_hypercube,
    generate_lattice,
    generate_wave_volume,
)
from hyperwave.model.params import LatticeShape, SceneMode


@pytest.mark.parametrize("n", [2, 3, 5, 7])
def test_hypercube_count_and_range(n):
    points = generate_hypercube(n)
    assert points.shape == (n ** 4, 4)
    assert points.min() >= AXIS_MIN
    assert points.max() <= AXIS_MAX


@pytest.mark.parametrize("n", [2, 4, 9])
def test_cube_count_and_range(n):
    points = generate_cube(n)
    assert points.shape == (n ** 3, 3)
    assert np.all((points >= AXIS_MIN) & (points <= AXIS_MAX))


def test_enumeration_is_repeatable():
    a = generate_hypercube(4)
    b = generate_hypercube(4)
    np.testing.assert_array_equal(a, b)


def test_enumeration_order_last_axis_innermost():
    points = generate_hypercube(2)
    np.testing.assert_array_equal(points[0], [-1, -1, -1, -1])
    np.testing.assert_array_equal(points[1], [-1, -1, -1, 1])
    np.testing.assert_array_equal(points[2], [-1, -1, 1, -1])
    np.testing.assert_array_equal(points[8], [1, -1, -1, -1])
    np.testing.assert_array_equal(points[15], [1, 1, 1, 1])


def test_index_formula_matches_coordinates():
    n = 3
    points = generate_hypercube(n)
    values = np.linspace(-1, 1, n)
    ix, iy, iz, iw = 2, 0, 1, 2
    i = ((ix * n + iy) * n + iz) * n + iw
    np.testing.assert_array_equal(points[i], [values[ix], values[iy], values[iz], values[iw]])


def test_lattice_is_read_only():
    points = generate_cube(3)
    with pytest.raises(ValueError):
        points[0, 0] = 5.0


@pytest.mark.parametrize("bad", [1, 0, -3, 2.5, True])
def test_rejects_degenerate_resolution(bad):
    with pytest.raises(ValueError):
        generate_hypercube(bad)


def test_wave_volume_w_is_standing_wave():
    points = generate_wave_volume(5)
    assert points.shape == (125, 4)
    x, y, z, w = points.T
    np.testing.assert_allclose(w, np.sin(np.pi * x) * np.sin(np.pi * y) * np.sin(np.pi * z))
    np.testing.assert_array_equal(points[:, :3], generate_cube(5))


def test_dispatch_by_mode():
    assert generate_lattice(SceneMode.WAVE_4D, 3).shape == (81, 4)
    assert generate_lattice(SceneMode.WAVE_4D, 3, LatticeShape.WAVE_VOLUME).shape == (27, 4)
    # Indra's net ignores the 4D lattice shape
    assert generate_lattice(SceneMode.INDRAS_NET, 3, LatticeShape.HYPERCUBE).shape == (27, 3)
