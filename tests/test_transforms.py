import numpy as np
import pytest

from hyperwave.model.transforms import (
    IDENTITY4,
    lerp_matrices,
    random_affine,
    rotate_xy,
    rotate_zw,
    transform,
    transform_points,
)


@pytest.mark.parametrize("interp", [0.0, 0.3, 1.0])
def test_identity_transform_returns_input(rng, interp):
    base = rng.uniform(-3, 3, size=4)
    out = transform(base, IDENTITY4, IDENTITY4, interp, 0.0, 0.0)
    np.testing.assert_array_equal(out, base)


def test_rotation_preserves_pair_norm(rng):
    points = rng.uniform(-10, 10, size=(200, 4))
    for angle in rng.uniform(-20, 20, size=10):
        xy = rotate_xy(points, angle)
        np.testing.assert_allclose(xy[:, 0] ** 2 + xy[:, 1] ** 2, points[:, 0] ** 2 + points[:, 1] ** 2)
        np.testing.assert_array_equal(xy[:, 2:], points[:, 2:])

        zw = rotate_zw(points, angle)
        np.testing.assert_allclose(zw[:, 2] ** 2 + zw[:, 3] ** 2, points[:, 2] ** 2 + points[:, 3] ** 2)
        np.testing.assert_array_equal(zw[:, :2], points[:, :2])


@pytest.mark.parametrize("theta, phi", [(np.pi / 2, np.pi / 2), (0.3, 1.1), (-2.0, 5.0)])
def test_rotation_is_additive(rng, theta, phi):
    base = rng.uniform(-2, 2, size=4)
    twice = transform(
        transform(base, IDENTITY4, IDENTITY4, 0.0, theta, theta),
        IDENTITY4, IDENTITY4, 0.0, phi, phi,
    )
    once = transform(base, IDENTITY4, IDENTITY4, 0.0, theta + phi, theta + phi)
    np.testing.assert_allclose(twice, once, atol=1e-12)


def test_two_quarter_turns_equal_half_turn():
    base = np.array([1.0, 2.0, 3.0, 4.0])
    quarter = rotate_xy(rotate_xy(base, np.pi / 2), np.pi / 2)
    np.testing.assert_allclose(quarter, [-1.0, -2.0, 3.0, 4.0], atol=1e-12)
    np.testing.assert_allclose(rotate_xy(base, np.pi), [-1.0, -2.0, 3.0, 4.0], atol=1e-12)


def test_quarter_turn_direction():
    np.testing.assert_allclose(rotate_xy([1.0, 0.0, 0.0, 0.0], np.pi / 2), [0, 1, 0, 0], atol=1e-15)
    np.testing.assert_allclose(rotate_zw([0.0, 0.0, 1.0, 0.0], np.pi / 2), [0, 0, 0, 1], atol=1e-15)


def test_lerp_endpoints_and_extrapolation():
    a = IDENTITY4
    b = 2.0 * IDENTITY4
    np.testing.assert_array_equal(lerp_matrices(a, b, 0.0), a)
    np.testing.assert_array_equal(lerp_matrices(a, b, 1.0), b)
    np.testing.assert_allclose(lerp_matrices(a, b, 0.5), 1.5 * IDENTITY4)
    # Out-of-range fractions extrapolate
    np.testing.assert_allclose(lerp_matrices(a, b, 2.0), 3.0 * IDENTITY4)


def test_matrix_is_applied_before_rotation():
    scale_x = np.diag([2.0, 1.0, 1.0, 1.0])
    base = np.array([1.0, 0.0, 0.0, 0.0])
    out = transform(base, scale_x, scale_x, 0.0, np.pi / 2, 0.0)
    # scale then rotate: (2, 0) -> (0, 2)
    np.testing.assert_allclose(out, [0.0, 2.0, 0.0, 0.0], atol=1e-12)
    # rotate then scale would give (0, 1)
    rotated_first = scale_x @ rotate_xy(base, np.pi / 2)
    assert not np.allclose(out, rotated_first)


def test_batch_matches_single(rng):
    t1 = random_affine(rng)
    t2 = random_affine(rng)
    points = rng.uniform(-1, 1, size=(50, 4))
    batch = transform_points(points, t1, t2, 0.35, 0.7, -1.3)
    for i in range(len(points)):
        np.testing.assert_allclose(batch[i], transform(points[i], t1, t2, 0.35, 0.7, -1.3), atol=1e-12)


def test_random_affine_is_seeded():
    a = random_affine(np.random.default_rng(7), scale=0.2)
    b = random_affine(np.random.default_rng(7), scale=0.2)
    np.testing.assert_array_equal(a, b)
    assert a.shape == (4, 4)
    assert np.all(np.abs(a - IDENTITY4) <= 0.2)
