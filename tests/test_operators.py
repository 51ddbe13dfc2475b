"""Tests for the lognormal recipe, square root and post-processing."""

import warnings

import numpy as np
import pytest

from olfactory_environment import (
    AsymmetryInvariantError,
    InvalidArgumentError,
    NotPositiveSemidefiniteWarning,
    enforce_psd,
    enforce_symmetry,
    lognormal_parameters,
    sqrtm_spd,
)


@pytest.mark.parametrize("mean, std", [(1.0, 1.0), (2.0, 0.5), (0.3, 2.0)])
def test_lognormal_parameters_reproduce_moments(mean, std):
    ln_mu, ln_sigma = lognormal_parameters(mean, std)
    expected_mean = np.exp(ln_mu + ln_sigma**2 / 2)
    expected_var = (np.exp(ln_sigma**2) - 1) * np.exp(2 * ln_mu + ln_sigma**2)
    assert expected_mean == pytest.approx(mean)
    assert np.sqrt(expected_var) == pytest.approx(std)


def test_lognormal_parameters_known_values():
    ln_mu, ln_sigma = lognormal_parameters(1.0, 1.0)
    assert ln_mu == pytest.approx(-0.5 * np.log(2))
    assert ln_sigma == pytest.approx(np.sqrt(np.log(2)))


def test_lognormal_parameters_large_mean():
    ln_mu, ln_sigma = lognormal_parameters(1e200, 1.0)
    assert ln_mu == pytest.approx(200 * np.log(10))
    assert ln_sigma == 0.0


@pytest.mark.parametrize("mean, std", [(1e-200, 1e200), (1e-300, 1.0)])
def test_lognormal_parameters_overflow_rejected(mean, std):
    with pytest.raises(InvalidArgumentError, match="not finite"):
        lognormal_parameters(mean, std)


def test_sqrtm_spd(base_matrix):
    root = sqrtm_spd(base_matrix)
    assert np.allclose(root, root.T)
    assert np.allclose(root @ root, base_matrix)
    assert np.all(np.linalg.eigvalsh(0.5 * (root + root.T)) > 0)


def test_sqrtm_spd_clamps_round_off():
    A = np.diag([4.0, -1e-15])
    assert np.allclose(sqrtm_spd(A), np.diag([2.0, 0.0]))


class TestEnforceSymmetry:
    def test_symmetric_matrix_unchanged(self, base_matrix):
        assert np.array_equal(enforce_symmetry(base_matrix), base_matrix)

    def test_small_asymmetry_repaired(self):
        gamma = np.array([[1.0, 0.5 + 1e-14], [0.5, 2.0]])
        result = enforce_symmetry(gamma)
        assert np.array_equal(result, result.T)
        assert result[0, 1] == pytest.approx(0.5)

    def test_large_asymmetry_is_fatal(self):
        gamma = np.array([[1.0, 0.5 + 1e-9], [0.5, 2.0]])
        with pytest.raises(AsymmetryInvariantError):
            enforce_symmetry(gamma)

    def test_asymmetry_error_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            enforce_symmetry(np.array([[0.0, 1.0], [0.0, 0.0]]))


class TestEnforcePSD:
    def test_psd_matrix_unchanged(self, base_matrix):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = enforce_psd(base_matrix)
        assert np.array_equal(result, base_matrix)

    def test_large_negative_eigenvalue_warns_and_returns_as_is(self):
        gamma = np.diag([1.0, -1.0])
        with pytest.warns(NotPositiveSemidefiniteWarning):
            result = enforce_psd(gamma)
        assert np.array_equal(result, gamma)

    def test_round_off_negative_eigenvalue_clamped(self):
        gamma = np.diag([1.0, -1e-14])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = enforce_psd(gamma)
        assert np.allclose(result, np.diag([1.0, 0.0]), atol=1e-15)
        assert np.array_equal(result, result.T)
        assert np.min(np.linalg.eigvalsh(result)) >= -1e-15

    def test_clamp_keeps_exact_symmetry_for_dense_matrix(self):
        v = np.array([1.0, 2.0, -1.0]) / np.sqrt(6)
        gamma = np.outer(v, v) - 1e-13 * np.eye(3)
        gamma = 0.5 * (gamma + gamma.T)
        result = enforce_psd(gamma)
        assert np.array_equal(result, result.T)
        assert np.min(np.linalg.eigvalsh(result)) >= -1e-12
