import numpy as np
import pytest

from hyperwave.model.lighting import (
    AMBIENT_TINT,
    ORBIT_RADIUS,
    SHININESS,
    LightSource,
    attenuation,
    light_positions,
    make_lights,
    reflect,
    reflect_points,
    reflect_vector,
    specular_power,
    sphere_normal,
)


def test_kernels():
    assert attenuation(4.0, 1.0, 0.25) == pytest.approx(0.5)
    assert attenuation(0.0, 2.0, 10.0) == pytest.approx(2.0)
    assert specular_power(-0.3, SHININESS) == 0.0
    assert specular_power(1.0, SHININESS) == pytest.approx(1.0)
    assert specular_power(0.5, 2.0) == pytest.approx(0.25)
    np.testing.assert_allclose(attenuation(np.array([0.0, 1.0]), 1.0, 1.0), [1.0, 0.5])


def test_zero_light_intensity_gives_ambient_only(rng):
    positions = rng.uniform(-3, 3, size=(64, 3))
    for time in (0.0, 1.7, 250.0):
        lights = make_lights(time, 0.8)
        rgb = reflect_points(positions, [8.0, 8.0, 8.0], lights, 1.5, 0.0)
        np.testing.assert_allclose(rgb, np.tile(AMBIENT_TINT, (64, 1)))


def test_output_non_negative(rng):
    positions = rng.uniform(-3, 3, size=(200, 3))
    rgb = reflect_points(positions, [0.0, 0.0, 10.0], make_lights(3.0, 1.0), 2.0, 5.0, 1.0)
    assert rgb.min() >= 0.0


def test_light_behind_viewer_gives_full_highlight():
    light = LightSource(position=np.array([0.0, 0.0, 2.0]), color=np.array([1.0, 0.5, 0.0]))
    rgb = reflect([0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [light], 1.0, 1.0, reflection_range=5.0)
    expected_att = 1.0 / (1.0 + 4.0 / 25.0)
    np.testing.assert_allclose(rgb, AMBIENT_TINT + expected_att * np.array([1.0, 0.5, 0.0]))


def test_light_beside_particle_gives_no_highlight():
    light = LightSource(position=np.array([3.0, 0.0, 0.0]), color=np.array([1.0, 1.0, 1.0]))
    rgb = reflect([0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [light], 1.0, 1.0)
    np.testing.assert_allclose(rgb, AMBIENT_TINT, atol=1e-12)


def test_single_and_batch_agree(rng):
    lights = make_lights(2.0, 0.5)
    view = np.array([8.0, 8.0, 8.0])
    positions = rng.uniform(-2, 2, size=(20, 3))
    batch = reflect_points(positions, view, lights, 1.2, 0.9, 4.0)
    for i, pos in enumerate(positions):
        view_dir = (view - pos) / np.linalg.norm(view - pos)
        np.testing.assert_allclose(reflect(pos, view_dir, lights, 1.2, 0.9, 4.0), batch[i], atol=1e-12)


def test_light_orbits_are_closed_form():
    a = light_positions(12.5, 0.7)
    b = light_positions(12.5, 0.7)
    np.testing.assert_array_equal(a, b)
    assert a.shape == (3, 3)
    assert np.all(np.abs(light_positions(1e7, 1.3)) <= ORBIT_RADIUS)
    # Each light follows its own path
    assert not np.allclose(a[0], a[1])
    # Orbit speed only rescales time
    np.testing.assert_allclose(light_positions(10.0, 0.5), light_positions(5.0, 1.0))


def test_reflect_vector_and_normal():
    np.testing.assert_allclose(reflect_vector([1.0, -1.0, 0.0], [0.0, 1.0, 0.0]), [1.0, 1.0, 0.0])
    view = np.array([0.0, 0.0, 1.0])
    np.testing.assert_allclose(sphere_normal(view), view)
    edge = sphere_normal(view, (0.5, 0.0))
    assert np.linalg.norm(edge) == pytest.approx(1.0)
    assert abs(edge[2]) < 1e-12


def test_normalize_helpers():
    from hyperwave.utils import normalize, normalize_rows

    np.testing.assert_allclose(normalize([3.0, 0.0, 4.0]), [0.6, 0.0, 0.8])
    np.testing.assert_array_equal(normalize([0.0, 0.0, 0.0]), [0.0, 0.0, 0.0])
    rows = normalize_rows([[0.0, 2.0, 0.0], [0.0, 0.0, 0.0]])
    np.testing.assert_array_equal(rows, [[0.0, 1.0, 0.0], [0.0, 0.0, 0.0]])
