"""
Utility functions for environment generation.

This module provides the random correlation sampler, the selection of odorants
perturbed by the delta models, and parsing of the size-or-base argument.
"""

from numbers import Integral
from typing import Any, Optional, Sequence
import numpy as np
import numpy.typing as npt
from .errors import InvalidArgumentError


def random_correlation(n: int, beta: float, rng: Optional[np.random.Generator] = None) -> npt.NDArray[np.floating]:
    """
    Sample a random correlation matrix with the vine method.

    Partial correlations along a C-vine are drawn independently as 2 * Beta(beta, beta) - 1
    and converted to correlations recursively. The rows and columns are then
    permuted at random so that no odorant position is favored by the vine order.

    Parameters
    ----------
    n : int
        Size of the matrix.
    beta : float
        Concentration parameter. Larger values push partial correlations toward
        zero, so the matrix is closer to the identity. Must be positive.
    rng : np.random.Generator, optional
        Random number generator.

    Returns
    -------
    npt.NDArray[np.floating]
        Symmetric positive definite matrix of shape (n, n) with unit diagonal.

    References
    ----------
    Lewandowski, Kurowicka & Joe (2009). Generating random correlation matrices
    based on vines and extended onion method. J. Multivariate Analysis 100, 1989-2001.
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")
    if beta <= 0:
        raise ValueError(f"beta must be positive, got {beta}")

    rng = np.random.default_rng() if rng is None else rng

    partial = np.zeros((n, n))
    corr = np.eye(n)
    for k in range(n - 1):
        for i in range(k + 1, n):
            partial[k, i] = 2.0 * rng.beta(beta, beta) - 1.0
            p = partial[k, i]
            # walk back up the vine to turn the partial correlation into a correlation
            for l in range(k - 1, -1, -1):
                p = p * np.sqrt((1 - partial[l, i] ** 2) * (1 - partial[l, k] ** 2)) + partial[l, i] * partial[l, k]
            corr[k, i] = p
            corr[i, k] = p

    perm = rng.permutation(n)
    return corr[np.ix_(perm, perm)]


def select_odorants(
    num_odorants: int,
    n_delta: int,
    delta_pos: Optional[Sequence[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> npt.NDArray[np.integer]:
    """
    Choose the odorants perturbed by the delta models.

    Parameters
    ----------
    num_odorants : int
        Number of odorants in the environment.
    n_delta : int
        Number of odorants to draw (without replacement) when delta_pos is None.
    delta_pos : sequence of int, optional
        Explicit 1-based positions to use instead of a random draw.
    rng : np.random.Generator, optional
        Random number generator.

    Returns
    -------
    npt.NDArray[np.integer]
        0-based indices of the selected odorants.
    """
    if delta_pos is not None:
        idxs = np.asarray(delta_pos, dtype=int) - 1
        if len(idxs) > num_odorants or np.any(idxs >= num_odorants):
            raise InvalidArgumentError(f"delta_pos {tuple(delta_pos)} out of range for {num_odorants} odorants")
        return idxs

    if n_delta > num_odorants:
        raise InvalidArgumentError(f"Cannot choose n_delta={n_delta} distinct odorants out of {num_odorants}")
    rng = np.random.default_rng() if rng is None else rng
    return rng.choice(num_odorants, size=n_delta, replace=False)


def parse_size_or_base(size_or_base: Any) -> tuple[int, Optional[npt.NDArray[np.floating]]]:
    """
    Interpret the second argument of the generator as a size or a base matrix.

    Parameters
    ----------
    size_or_base : int or array_like
        Either a positive integer N, or a square (N, N) base covariance matrix.

    Returns
    -------
    tuple
        (num_odorants, base) where base is a float copy of the matrix, or None
        if an integer was passed.

    Raises
    ------
    InvalidArgumentError
        If the argument is neither a positive integer nor a square real matrix.
    """
    if isinstance(size_or_base, (bool, np.bool_)):
        raise InvalidArgumentError("Second argument should be a positive integer or a covariance matrix.")

    if isinstance(size_or_base, Integral):
        if size_or_base < 1:
            raise InvalidArgumentError(f"Number of odorants must be positive, got {size_or_base}")
        return int(size_or_base), None

    try:
        base = np.array(size_or_base, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError("Second argument should be a positive integer or a covariance matrix.") from e

    if base.ndim != 2 or base.shape[0] != base.shape[1]:
        raise InvalidArgumentError(f"Base matrix must be square, got shape {base.shape}")
    if base.shape[0] < 1:
        raise InvalidArgumentError("Base matrix must be at least 1 x 1")
    if not np.all(np.isfinite(base)):
        raise InvalidArgumentError("Base matrix must contain only finite values")
    return base.shape[0], base
