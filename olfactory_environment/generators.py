from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union
import numpy as np
import numpy.typing as npt
from .config import EnvironmentOptions, default_options
from .errors import InvalidArgumentError, UnknownModelError
from .operators import enforce_psd, enforce_symmetry, lognormal_parameters, sqrtm_spd
from .utilities import parse_size_or_base, random_correlation, select_odorants

Details = dict[str, Any]
Strategy = Callable[
    [int, Optional[npt.NDArray[np.floating]], EnvironmentOptions, np.random.Generator],
    tuple[npt.NDArray[np.floating], Details],
]


class EnvironmentModel(str, Enum):
    """Generative recipes for environment covariance matrices."""

    IDENTITY = "identity"
    RND_DIAG = "rnd_diag"
    RND_DIAG_CONST = "rnd_diag_const"
    RND_DIAG_RND = "rnd_diag_rnd"
    RND_PRODUCT = "rnd_product"
    RND_CORR = "rnd_corr"
    DELTA_RND_DIAG = "delta_rnd_diag"
    DELTA_RND_PROD = "delta_rnd_prod"
    DELTA_RND_UNIF = "delta_rnd_unif"

    @property
    def requires_base(self) -> bool:
        """Whether the model perturbs a base matrix rather than building one from a size."""
        return self.value.startswith("delta_")

    @classmethod
    def parse(cls, model: Union["EnvironmentModel", str]) -> "EnvironmentModel":
        if isinstance(model, cls):
            return model
        try:
            return cls(model)
        except ValueError as e:
            raise UnknownModelError(f"Unknown environment model '{model}'. Available: {[m.value for m in cls]}") from e


def scalar_offset(model: Union[EnvironmentModel, str], opts: EnvironmentOptions) -> float:
    """Scalar added to every entry (diagonal included) by rnd_diag_const and rnd_diag_rnd, 0 for other models."""
    model = EnvironmentModel.parse(model)
    if model == EnvironmentModel.RND_DIAG_CONST:
        return opts.offdiag_mu
    if model == EnvironmentModel.RND_DIAG_RND:
        # TODO: confirm whether this should be a per-entry draw, uniform in offdiag_mu +/- offdiag_size
        return opts.offdiag_mu + 2 * (opts.offdiag_size - 0.5) * opts.offdiag_size
    return 0.0


def _strategy_identity(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    return np.eye(num_odorants), {}


def _random_diagonal(num_odorants: int, opts: EnvironmentOptions, rng: np.random.Generator) -> tuple[npt.NDArray[np.floating], Details]:
    """Lognormal diagonal whose elements have mean diag_mu and standard deviation diag_size."""
    ln_mu, ln_sigma = lognormal_parameters(opts.diag_mu, opts.diag_size)
    gamma = np.diag(rng.lognormal(mean=ln_mu, sigma=ln_sigma, size=num_odorants))
    return gamma, dict(ln_mu=ln_mu, ln_sigma=ln_sigma)


def _strategy_rnd_diag(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    return _random_diagonal(num_odorants, opts, rng)


def _strategy_rnd_diag_const(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    gamma, details = _random_diagonal(num_odorants, opts, rng)
    # NOTE: this also raises the diagonal
    return gamma + scalar_offset(EnvironmentModel.RND_DIAG_CONST, opts), details


def _strategy_rnd_diag_rnd(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    gamma, details = _random_diagonal(num_odorants, opts, rng)
    off_diag = scalar_offset(EnvironmentModel.RND_DIAG_RND, opts)
    off_diag = (off_diag + np.transpose(off_diag)) / 2
    return gamma + off_diag, details


def _strategy_rnd_product(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    factor_rows = opts.factor_rows.resolve(num_odorants)
    M = opts.factor_size * rng.standard_normal((factor_rows, num_odorants))
    return M.T @ M, dict(factor=M)


def _strategy_rnd_corr(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    ln_mu, ln_sigma = lognormal_parameters(opts.diag_mu, opts.diag_size)
    variances = rng.lognormal(mean=ln_mu, sigma=ln_sigma, size=num_odorants)
    stdevs = np.sqrt(variances)

    corr = random_correlation(num_odorants, opts.corr_beta, rng=rng)
    gamma = stdevs[:, None] * corr * stdevs[None, :]
    return gamma, dict(ln_mu=ln_mu, ln_sigma=ln_sigma, variances=variances)


def _strategy_delta_rnd_diag(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    idxs = select_odorants(num_odorants, opts.n_delta, opts.delta_pos, rng=rng)

    # add variance to independent odorants
    delta = np.zeros(num_odorants)
    delta[idxs] = opts.delta_size
    return base + np.diag(delta), dict(idxs=idxs, delta=delta)


def _strategy_delta_rnd_prod(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    idxs = select_odorants(num_odorants, opts.n_delta, opts.delta_pos, rng=rng)

    # add variance and covariance among co-occurring odorants
    gamma = base.copy()
    gamma[np.ix_(idxs, idxs)] += opts.delta_size
    return gamma, dict(idxs=idxs)


def _strategy_delta_rnd_unif(
    num_odorants: int, base: Optional[npt.NDArray[np.floating]], opts: EnvironmentOptions, rng: np.random.Generator
) -> tuple[npt.NDArray[np.floating], Details]:
    # eigh only reads one triangle, so an asymmetric base has to be caught here
    M0 = sqrtm_spd(enforce_symmetry(base))
    M0 = M0 + opts.factor_size * rng.standard_normal(M0.shape)
    return M0.T @ M0, dict(factor=M0)


# Registry of available generation strategies
STRATEGIES: Mapping[EnvironmentModel, Strategy] = {
    # Built from a size
    EnvironmentModel.IDENTITY: _strategy_identity,
    EnvironmentModel.RND_DIAG: _strategy_rnd_diag,
    EnvironmentModel.RND_DIAG_CONST: _strategy_rnd_diag_const,
    EnvironmentModel.RND_DIAG_RND: _strategy_rnd_diag_rnd,
    EnvironmentModel.RND_PRODUCT: _strategy_rnd_product,
    EnvironmentModel.RND_CORR: _strategy_rnd_corr,
    # Perturbations of a base matrix
    EnvironmentModel.DELTA_RND_DIAG: _strategy_delta_rnd_diag,
    EnvironmentModel.DELTA_RND_PROD: _strategy_delta_rnd_prod,
    EnvironmentModel.DELTA_RND_UNIF: _strategy_delta_rnd_unif,
}

_missing = set(EnvironmentModel) - set(STRATEGIES)
if _missing:
    raise ImportError(f"No generation strategy registered for {sorted(m.value for m in _missing)}")


@dataclass(frozen=True)
class EnvironmentGenerator:
    """
    Generator of environment covariance matrices for a fixed model and set of options.

    Parameters
    ----------
    model : EnvironmentModel or str
        Which generative recipe to use. Strings are converted on construction.
    options : EnvironmentOptions
        Options for the recipe. Defaults to EnvironmentOptions().

    Examples
    --------
    >>> rng = np.random.default_rng(0)
    >>> gen = EnvironmentGenerator("rnd_product", EnvironmentOptions(factor_rows=20))
    >>> gamma, details = gen.generate(5, rng=rng)
    >>> details["factor"].shape
    (20, 5)
    """

    model: EnvironmentModel
    options: EnvironmentOptions = field(default_factory=EnvironmentOptions)

    def __post_init__(self):
        object.__setattr__(self, "model", EnvironmentModel.parse(self.model))
        if not isinstance(self.options, EnvironmentOptions):
            raise InvalidArgumentError(f"options must be EnvironmentOptions, got {type(self.options).__name__}")

    def generate(
        self,
        size_or_base: Union[int, npt.ArrayLike],
        rng: Optional[np.random.Generator] = None,
    ) -> tuple[npt.NDArray[np.floating], Details]:
        """
        Generate an environment covariance matrix.

        Parameters
        ----------
        size_or_base : int or array_like
            Number of odorants, or a base covariance matrix of shape (N, N). The
            delta models require a base matrix; the other models only use its size.
        rng : np.random.Generator, optional
            Random number generator. Every random draw is taken from it, so seeding
            it makes the result reproducible.

        Returns
        -------
        gamma : npt.NDArray[np.floating]
            Symmetric environment covariance matrix of shape (N, N).
        details : dict
            Intermediate results of the chosen model (e.g. "ln_mu", "factor", "idxs").

        Raises
        ------
        InvalidArgumentError
            If size_or_base is invalid, or a delta model is given a size only.
        AsymmetryInvariantError
            If the generated matrix is not symmetric within 1e-12.

        Warns
        -----
        NotPositiveSemidefiniteWarning
            If the generated matrix has an eigenvalue below -1e-12. The matrix is
            returned unchanged in that case.
        """
        num_odorants, base = parse_size_or_base(size_or_base)
        if self.model.requires_base and base is None:
            raise InvalidArgumentError(f"Model '{self.model.value}' perturbs a base matrix; pass the matrix instead of a size.")

        rng = np.random.default_rng() if rng is None else rng
        gamma, details = STRATEGIES[self.model](num_odorants, base, self.options, rng)

        gamma = enforce_symmetry(gamma)
        gamma = enforce_psd(gamma)
        return gamma, details


def show_defaults() -> dict[str, Any]:
    """Print the available options with their defaults and return them."""
    defaults = default_options()
    print("Available options and their defaults:")
    for name, value in defaults.items():
        print(f"    {name}: {value!r}")
    return defaults


def generate_environment(
    model: Union[EnvironmentModel, str],
    size_or_base: Optional[Union[int, npt.ArrayLike]] = None,
    options: Optional[EnvironmentOptions] = None,
    *,
    rng: Optional[np.random.Generator] = None,
    **overrides: Any,
) -> Union[tuple[npt.NDArray[np.floating], Details], dict[str, Any]]:
    """
    Generate an artificial environment covariance matrix.

    Parameters
    ----------
    model : EnvironmentModel or str
        One of "identity", "rnd_diag", "rnd_diag_const", "rnd_diag_rnd",
        "rnd_product", "rnd_corr" (which need only a size) or "delta_rnd_diag",
        "delta_rnd_prod", "delta_rnd_unif" (which perturb a base matrix). The
        special value "defaults" prints and returns the available options and
        their default values without generating anything; it accepts no other
        arguments.
    size_or_base : int or array_like
        Number of odorants, or a base covariance matrix of shape (N, N).
    options : EnvironmentOptions, optional
        Options for the model. Defaults to EnvironmentOptions().
    rng : np.random.Generator, optional
        Random number generator.
    **overrides
        Individual options overriding those in ``options`` (e.g. diag_mu=2.0).

    Returns
    -------
    tuple
        (gamma, details) as returned by EnvironmentGenerator.generate, or the
        dictionary of default options when model is "defaults".

    Examples
    --------
    >>> rng = np.random.default_rng(42)
    >>> gamma0, _ = generate_environment("rnd_diag", 10, rng=rng)
    >>> gamma, details = generate_environment("delta_rnd_diag", gamma0, delta_pos=[1], rng=rng)
    >>> details["idxs"]
    array([0])
    """
    if model == "defaults":
        if size_or_base is not None or options is not None or rng is not None or overrides:
            raise InvalidArgumentError("The 'defaults' mode takes no other arguments.")
        return show_defaults()

    model = EnvironmentModel.parse(model)
    if size_or_base is None:
        raise InvalidArgumentError("Second argument should be a positive integer or a covariance matrix.")

    options = EnvironmentOptions() if options is None else options
    if overrides:
        options = options.with_overrides(**overrides)
    return EnvironmentGenerator(model, options).generate(size_or_base, rng=rng)
