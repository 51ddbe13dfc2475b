"""Tests for environment options and factor-row rules."""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from olfactory_environment import EnvironmentOptions, FactorRows, InvalidArgumentError, default_options


class TestEnvironmentOptions:
    def test_defaults(self):
        opts = EnvironmentOptions()
        assert opts.diag_mu == 1.0
        assert opts.diag_size == 1.0
        assert opts.offdiag_mu == 0.1
        assert opts.offdiag_size == 0.1
        assert opts.delta_size == 0.5
        assert opts.n_delta == 4
        assert opts.delta_pos is None
        assert opts.factor_rows.resolve(7) == 70
        assert opts.factor_size == 1.0
        assert opts.corr_beta == 5.0

    @pytest.mark.parametrize(
        "name, value",
        [
            ("diag_mu", 0),
            ("diag_mu", -1.0),
            ("diag_size", 0.0),
            ("offdiag_size", -0.1),
            ("n_delta", 0),
            ("n_delta", 2.5),
            ("corr_beta", 0),
            ("factor_size", -0.1),
            ("diag_mu", True),
            ("offdiag_mu", "a lot"),
            ("delta_size", np.nan),
        ],
    )
    def test_rejects_out_of_domain_values(self, name, value):
        with pytest.raises(InvalidArgumentError, match=name):
            EnvironmentOptions(**{name: value})

    def test_accepts_negative_offdiag_mu_and_delta_size(self):
        opts = EnvironmentOptions(offdiag_mu=-0.3, delta_size=-0.2)
        assert opts.offdiag_mu == -0.3
        assert opts.delta_size == -0.2

    def test_factor_size_zero_allowed(self):
        assert EnvironmentOptions(factor_size=0).factor_size == 0.0

    def test_numpy_scalars_are_converted(self):
        opts = EnvironmentOptions(diag_mu=np.float32(2.0), n_delta=np.int64(3))
        assert isinstance(opts.diag_mu, float)
        assert isinstance(opts.n_delta, int)

    @pytest.mark.parametrize("delta_pos", [[0, 1], [1, 1], [1.5], [[1, 2]], [-2], [2.0, float("nan")], ["a"]])
    def test_rejects_bad_delta_pos(self, delta_pos):
        with pytest.raises(InvalidArgumentError, match="delta_pos"):
            EnvironmentOptions(delta_pos=delta_pos)

    def test_delta_pos_normalized_to_tuple(self):
        assert EnvironmentOptions(delta_pos=[3, 1]).delta_pos == (3, 1)
        assert EnvironmentOptions(delta_pos=np.array([2, 4])).delta_pos == (2, 4)

    def test_integral_float_delta_pos_accepted(self):
        opts = EnvironmentOptions(delta_pos=np.array([1.0, 2.0]))
        assert opts.delta_pos == (1, 2)
        assert all(isinstance(p, int) for p in opts.delta_pos)

    def test_empty_delta_pos_means_random_selection(self):
        assert EnvironmentOptions(delta_pos=[]).delta_pos is None

    def test_factor_rows_coercion(self):
        assert EnvironmentOptions(factor_rows=7).factor_rows == FactorRows.fixed(7)
        opts = EnvironmentOptions(factor_rows=lambda n: n + 1)
        assert opts.factor_rows.resolve(4) == 5

    def test_is_frozen(self):
        opts = EnvironmentOptions()
        with pytest.raises(FrozenInstanceError):
            opts.diag_mu = 3.0

    def test_with_overrides_returns_validated_copy(self):
        opts = EnvironmentOptions()
        new = opts.with_overrides(diag_mu=2.0, delta_pos=[2])
        assert new.diag_mu == 2.0
        assert new.delta_pos == (2,)
        assert opts.diag_mu == 1.0

        with pytest.raises(InvalidArgumentError):
            opts.with_overrides(diag_mu=-2.0)

    def test_with_overrides_rejects_unknown_names(self):
        with pytest.raises(InvalidArgumentError, match="Unknown option"):
            EnvironmentOptions().with_overrides(diag_sigma=2.0)

    def test_invalid_argument_is_a_value_error(self):
        with pytest.raises(ValueError):
            EnvironmentOptions(diag_mu=0)


class TestFactorRows:
    def test_fixed(self):
        assert FactorRows.fixed(12).resolve(100) == 12

    def test_per_odorant(self):
        assert FactorRows.per_odorant(3).resolve(5) == 15
        assert FactorRows.per_odorant().resolve(5) == 50

    def test_rule(self):
        rows = FactorRows.from_rule(lambda n: 2 * n + 1)
        assert rows.resolve(4) == 9

    def test_requires_exactly_one_form(self):
        with pytest.raises(InvalidArgumentError):
            FactorRows()
        with pytest.raises(InvalidArgumentError):
            FactorRows(count=3, rule=lambda n: n)

    @pytest.mark.parametrize("count", [0, -4, 2.0])
    def test_fixed_must_be_positive_integer(self, count):
        with pytest.raises(InvalidArgumentError):
            FactorRows.fixed(count)

    def test_rule_result_is_validated(self):
        rows = FactorRows.from_rule(lambda n: n - 5)
        assert rows.resolve(6) == 1
        with pytest.raises(InvalidArgumentError):
            rows.resolve(5)

    def test_non_callable_rule(self):
        with pytest.raises(InvalidArgumentError):
            FactorRows(rule=10)


def test_default_options_listing():
    defaults = default_options()
    assert list(defaults) == [
        "diag_mu",
        "diag_size",
        "offdiag_mu",
        "offdiag_size",
        "delta_size",
        "n_delta",
        "delta_pos",
        "factor_rows",
        "factor_size",
        "corr_beta",
    ]
    assert defaults["n_delta"] == 4
    assert defaults["factor_rows"] == FactorRows.per_odorant(10)
