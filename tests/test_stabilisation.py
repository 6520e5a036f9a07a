import numpy as np
import pytest

from corrofem.stabilisation import (
    density_scaled_diffusivity,
    directional_diffusivity,
    isotropic_diffusivity,
    supg_scale,
    supg_stabilised,
)

NU = [0.5, 0.5]
G = np.array([[-1.0, 1.0, 0.0], [-1.0, 0.0, 1.0]])
N = [1 / 3, 1 / 3, 1 / 3]


def test_supg_scale_square_root_of_sum():
    assert supg_scale([1.0, 3.0]) == pytest.approx(2.0)


def test_supg_along_x_uses_x_gradient():
    n_supg, _ = supg_stabilised(N, G, NU, [2.0, 2.0, 0.0, 0.0], 0.4, 1.0)
    np.testing.assert_allclose(n_supg, 0.5 * 0.4 * G[0])


def test_supg_direction_only_and_derivative_scaling():
    u = np.array([1.0, 2.0, -1.0, 0.5])
    n1, d1 = supg_stabilised(N, G, NU, u, 0.3, 0.0)
    n2, d2 = supg_stabilised(N, G, NU, 2 * u, 0.3, 0.0)
    np.testing.assert_allclose(n1, n2)
    np.testing.assert_allclose(d2, d1 / 2)
    assert d1.shape == (4, 3)


def test_supg_zero_velocity_gives_zero():
    n_supg, _ = supg_stabilised(N, G, NU, np.zeros(4), 1.0, 1.0)
    np.testing.assert_allclose(n_supg, np.zeros(3))


def test_supg_bad_velocity_length():
    with pytest.raises(ValueError):
        supg_stabilised(N, G, NU, [1.0, 2.0, 3.0], 1.0, 1.0)


def test_isotropic_zero_velocity_returns_diff():
    assert isotropic_diffusivity(NU, np.zeros(4), [1.0], 0.7) == 0.7


def test_isotropic_linear_in_speed_when_dominant():
    a = isotropic_diffusivity(NU, [3.0, 3.0, 4.0, 4.0], [1.0, 1.0], 1e-9)
    b = isotropic_diffusivity(NU, [6.0, 6.0, 8.0, 8.0], [1.0, 1.0], 1e-9)
    assert b == pytest.approx(2 * a)
    assert a > 1e-9


def test_directional_raises_only_first_two_diagonals():
    diff = np.zeros((4, 4))
    diff[2, 2] = 5.0
    result = directional_diffusivity(NU, [1.0, 1.0, -2.0, -2.0], [4.0], diff)
    assert result[1, 1] == pytest.approx(2 * result[0, 0])
    assert result[0, 0] > 0
    assert result[2, 2] == 5.0
    assert diff[0, 0] == 0.0


def test_directional_keeps_larger_diff():
    diff = np.eye(4) * 100.0
    result = directional_diffusivity(NU, [1.0, 1.0, 1.0, 1.0], [1.0], diff)
    np.testing.assert_allclose(result, diff)


def test_density_floor_and_uniformity():
    diff = np.zeros((4, 4))
    low = density_scaled_diffusivity(NU, [1.0, 1.0, 2.0, 2.0], [1.0], diff, 1.0)
    floor = density_scaled_diffusivity(NU, [1.0, 1.0, 2.0, 2.0], [1.0], diff, 910.0)
    np.testing.assert_allclose(low, floor)
    assert low[0, 0] == pytest.approx(low[1, 1])
    assert low[0, 0] > 0


def test_density_zero_velocity_unchanged():
    diff = np.eye(4) * 0.1
    result = density_scaled_diffusivity(NU, np.zeros(4), [1.0], diff, 2000.0)
    np.testing.assert_allclose(result, diff)