"""
Matrix operators for environment covariance matrices.

This module provides the lognormal parameter conversion shared by the diagonal
models, the symmetric square root used by perturbation models, and the
post-processing that every generated matrix goes through: an exact symmetry
repair and a positive-semidefiniteness check.
"""

from warnings import warn
import numpy as np
import numpy.typing as npt
from .errors import AsymmetryInvariantError, InvalidArgumentError, NotPositiveSemidefiniteWarning

SYMMETRY_TOLERANCE: float = 1e-12
PSD_TOLERANCE: float = 1e-12


def lognormal_parameters(mean: float, std: float) -> tuple[float, float]:
    """
    Convert the mean and standard deviation of a lognormal variable to the
    parameters of its underlying normal distribution.

    Parameters
    ----------
    mean : float
        Mean of the lognormal variable. Must be positive.
    std : float
        Standard deviation of the lognormal variable. Must be positive.

    Returns
    -------
    tuple[float, float]
        (ln_mu, ln_sigma) such that exp(N(ln_mu, ln_sigma**2)) has the requested
        mean and standard deviation.

    Raises
    ------
    InvalidArgumentError
        If the parameters cannot be represented in double precision (e.g. an
        extreme ratio std / mean).

    Examples
    --------
    >>> ln_mu, ln_sigma = lognormal_parameters(1.0, 1.0)
    >>> np.isclose(np.exp(ln_mu + ln_sigma**2 / 2), 1.0)
    True
    """
    # log(mean**2 / sqrt(std**2 + mean**2)) and sqrt(log(std**2 / mean**2 + 1)),
    # written in terms of the ratio so that large in-range values don't overflow
    mean, std = np.float64(mean), np.float64(std)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        ratio_sq = (std / mean) ** 2
        ln_mu = np.log(mean) - 0.5 * np.log1p(ratio_sq)
        ln_sigma = np.sqrt(np.log1p(ratio_sq))
    if not (np.isfinite(ln_mu) and np.isfinite(ln_sigma)):
        raise InvalidArgumentError(f"Lognormal parameters for mean={mean}, std={std} are not finite")
    return float(ln_mu), float(ln_sigma)


def sqrtm_spd(A: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
    """
    Compute the symmetric positive semidefinite square root of a symmetric matrix.

    Negative eigenvalues (numerical noise for a PSD input) are clamped to zero
    before taking the root, so the result satisfies root @ root = A for PSD A.

    Parameters
    ----------
    A : npt.NDArray[np.floating]
        Symmetric positive semidefinite matrix of shape (N, N).

    Returns
    -------
    npt.NDArray[np.floating]
        Matrix square root of A, shape (N, N).
    """
    w, V = np.linalg.eigh(A)
    w = np.maximum(w, 0.0)
    return (V * np.sqrt(w)) @ V.T


def enforce_symmetry(gamma: npt.NDArray[np.floating], tol: float = SYMMETRY_TOLERANCE) -> npt.NDArray[np.floating]:
    """
    Make a nearly symmetric matrix exactly symmetric.

    Parameters
    ----------
    gamma : npt.NDArray[np.floating]
        Square matrix.
    tol : float, default=1e-12
        Largest tolerated absolute difference between gamma and its transpose.

    Returns
    -------
    npt.NDArray[np.floating]
        0.5 * (gamma + gamma.T), which is exactly symmetric.

    Raises
    ------
    AsymmetryInvariantError
        If the asymmetry exceeds ``tol``. Generation strategies should never
        produce such a matrix.
    """
    asymmetry = np.max(np.abs(gamma - gamma.T))
    if asymmetry > tol:
        raise AsymmetryInvariantError(f"The generated matrix is not symmetric (max asymmetry {asymmetry:.3e}). This shouldn't happen.")
    return 0.5 * (gamma + gamma.T)


def enforce_psd(gamma: npt.NDArray[np.floating], tol: float = PSD_TOLERANCE) -> npt.NDArray[np.floating]:
    """
    Check that a symmetric matrix is positive semidefinite.

    Eigenvalues in [-tol, 0) are treated as round-off: the matrix is rebuilt from
    its eigendecomposition with those eigenvalues set to zero. Eigenvalues below
    -tol are reported with a NotPositiveSemidefiniteWarning and the matrix is
    returned unchanged.

    Parameters
    ----------
    gamma : npt.NDArray[np.floating]
        Exactly symmetric matrix.
    tol : float, default=1e-12
        Magnitude of negative eigenvalues that is silently repaired.

    Returns
    -------
    npt.NDArray[np.floating]
        The (possibly repaired) matrix, exactly symmetric.
    """
    evals = np.linalg.eigvalsh(gamma)
    if not np.any(evals < 0):
        return gamma

    if np.any(evals < -tol):
        warn(f"The generated matrix is not positive semidefinite (min eigenvalue {evals.min():.3e})!", NotPositiveSemidefiniteWarning, stacklevel=2)
        return gamma

    evals, evecs = np.linalg.eigh(gamma)
    repaired = (evecs * np.maximum(evals, 0.0)) @ evecs.T
    return 0.5 * (repaired + repaired.T)
