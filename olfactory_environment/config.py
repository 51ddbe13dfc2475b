from dataclasses import dataclass, field, fields, replace
from numbers import Integral, Real
from typing import Any, Callable, Optional, Sequence, Union
import numpy as np
from .errors import InvalidArgumentError


def _check_real(name: str, value: Any) -> float:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, Real):
        raise InvalidArgumentError(f"{name} must be a real scalar, got {value!r}")
    value = float(value)
    if not np.isfinite(value):
        raise InvalidArgumentError(f"{name} must be finite, got {value}")
    return value


def _check_positive(name: str, value: Any) -> float:
    value = _check_real(name, value)
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be positive, got {value}")
    return value


def _check_positive_int(name: str, value: Any) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, Integral):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidArgumentError(f"{name} must be positive, got {value}")
    return int(value)


@dataclass(frozen=True)
class PerOdorantRule:
    """Rule returning ``multiplier * num_odorants`` rows (picklable, readable repr)."""

    multiplier: int

    def __call__(self, num_odorants: int) -> int:
        return self.multiplier * num_odorants


@dataclass(frozen=True)
class FactorRows:
    """
    Number of rows of the latent factor matrix used by product-based models.

    Either a fixed ``count`` or a ``rule`` computed from the number of odorants.
    Exactly one of the two is set; use the classmethod constructors rather than
    building it directly.

    Examples
    --------
    >>> FactorRows.fixed(50).resolve(20)
    50
    >>> FactorRows.per_odorant(10).resolve(20)
    200
    """

    count: Optional[int] = None
    rule: Optional[Callable[[int], int]] = None

    def __post_init__(self):
        if (self.count is None) == (self.rule is None):
            raise InvalidArgumentError("factor_rows needs exactly one of a fixed count or a rule")
        if self.count is not None:
            object.__setattr__(self, "count", _check_positive_int("factor_rows", self.count))
        elif not callable(self.rule):
            raise InvalidArgumentError(f"factor_rows rule must be callable, got {self.rule!r}")

    @classmethod
    def fixed(cls, count: int) -> "FactorRows":
        return cls(count=count)

    @classmethod
    def from_rule(cls, rule: Callable[[int], int]) -> "FactorRows":
        return cls(rule=rule)

    @classmethod
    def per_odorant(cls, multiplier: int = 10) -> "FactorRows":
        return cls(rule=PerOdorantRule(_check_positive_int("multiplier", multiplier)))

    @classmethod
    def coerce(cls, value: Union["FactorRows", int, Callable[[int], int]]) -> "FactorRows":
        """Accept a FactorRows, a plain positive integer, or a callable rule."""
        if isinstance(value, FactorRows):
            return value
        if callable(value):
            return cls.from_rule(value)
        return cls.fixed(value)

    def resolve(self, num_odorants: int) -> int:
        """Return the number of rows for a matrix over ``num_odorants`` odorants."""
        if self.count is not None:
            return self.count
        return _check_positive_int("factor_rows", self.rule(num_odorants))


@dataclass(frozen=True)
class EnvironmentOptions:
    """
    Options controlling how environment covariance matrices are generated.

    Parameters
    ----------
    diag_mu : float, default=1.0
        Mean of the diagonal elements. The diagonal is lognormal; this is the
        mean of the elements themselves, not of the underlying normal. Must be positive.
    diag_size : float, default=1.0
        Standard deviation of the diagonal elements. Must be positive.
    offdiag_mu : float, default=0.1
        Amount added to the matrix by the ``rnd_diag_const`` and ``rnd_diag_rnd`` models.
    offdiag_size : float, default=0.1
        Spread term of the ``rnd_diag_rnd`` model. Must be positive.
    delta_size : float, default=0.5
        Size of the perturbation added by the ``delta_*`` models.
    n_delta : int, default=4
        Number of odorants perturbed when ``delta_pos`` is not given.
    delta_pos : tuple[int, ...] | None, default=None
        Explicit 1-based positions of the perturbed odorants. Overrides ``n_delta``.
    factor_rows : FactorRows | int | callable, default=10 * num_odorants
        Number of rows of the factor matrix for ``rnd_product``.
    factor_size : float, default=1.0
        Standard deviation of the factor matrix entries (``rnd_product``) or of the
        noise added to the square root of the base matrix (``delta_rnd_unif``).
        Must be nonnegative; 0 adds no noise.
    corr_beta : float, default=5.0
        Concentration parameter of the random correlation matrix (``rnd_corr``).
        Larger values give matrices closer to the identity. Must be positive.

    Examples
    --------
    >>> opts = EnvironmentOptions(diag_mu=2.0, factor_rows=50)
    >>> opts.with_overrides(delta_pos=[1, 3]).delta_pos
    (1, 3)
    """

    diag_mu: float = 1.0
    diag_size: float = 1.0
    offdiag_mu: float = 0.1
    offdiag_size: float = 0.1
    delta_size: float = 0.5
    n_delta: int = 4
    delta_pos: Optional[tuple[int, ...]] = None
    factor_rows: FactorRows = field(default_factory=FactorRows.per_odorant)
    factor_size: float = 1.0
    corr_beta: float = 5.0

    def __post_init__(self):
        object.__setattr__(self, "diag_mu", _check_positive("diag_mu", self.diag_mu))
        object.__setattr__(self, "diag_size", _check_positive("diag_size", self.diag_size))
        object.__setattr__(self, "offdiag_mu", _check_real("offdiag_mu", self.offdiag_mu))
        object.__setattr__(self, "offdiag_size", _check_positive("offdiag_size", self.offdiag_size))
        object.__setattr__(self, "delta_size", _check_real("delta_size", self.delta_size))
        object.__setattr__(self, "n_delta", _check_positive_int("n_delta", self.n_delta))
        object.__setattr__(self, "delta_pos", self._check_delta_pos(self.delta_pos))
        object.__setattr__(self, "factor_rows", FactorRows.coerce(self.factor_rows))
        factor_size = _check_real("factor_size", self.factor_size)
        if factor_size < 0:
            raise InvalidArgumentError(f"factor_size must be nonnegative, got {factor_size}")
        object.__setattr__(self, "factor_size", factor_size)
        object.__setattr__(self, "corr_beta", _check_positive("corr_beta", self.corr_beta))

    @staticmethod
    def _check_delta_pos(delta_pos: Optional[Sequence[int]]) -> Optional[tuple[int, ...]]:
        if delta_pos is None:
            return None
        try:
            positions = np.asarray(delta_pos)
        except ValueError as e:
            raise InvalidArgumentError(f"delta_pos must be a 1D sequence of integers, got {delta_pos!r}") from e
        if positions.size == 0:
            # an empty selection means "draw n_delta positions"
            return None
        if positions.ndim != 1 or not (np.issubdtype(positions.dtype, np.integer) or np.issubdtype(positions.dtype, np.floating)):
            raise InvalidArgumentError(f"delta_pos must be a 1D sequence of integers, got {delta_pos!r}")
        if not np.issubdtype(positions.dtype, np.integer):
            # integral floats such as np.array([1.0, 2.0]) are accepted
            if not np.all(np.isfinite(positions)) or np.any(positions != np.round(positions)):
                raise InvalidArgumentError(f"delta_pos must be a 1D sequence of integers, got {delta_pos!r}")
            positions = positions.astype(np.int64)
        if np.any(positions <= 0):
            raise InvalidArgumentError(f"delta_pos must contain positive (1-based) positions, got {delta_pos!r}")
        if len(np.unique(positions)) != len(positions):
            raise InvalidArgumentError(f"delta_pos must be unique, got {delta_pos!r}")
        return tuple(int(p) for p in positions)

    def with_overrides(self, **overrides: Any) -> "EnvironmentOptions":
        """Return a validated copy with some options replaced."""
        names = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            raise InvalidArgumentError(f"Unknown option(s) {unknown}. Available: {sorted(names)}")
        return replace(self, **overrides)


def default_options() -> dict[str, Any]:
    """Recognized options and their default values, in declaration order."""
    defaults = EnvironmentOptions()
    return {f.name: getattr(defaults, f.name) for f in fields(defaults)}
