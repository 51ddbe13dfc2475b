"""
Synthetic environment covariance matrices for olfactory receptor analyses.

This package generates random symmetric positive semidefinite matrices that
describe the covariance of odorant concentrations in an environment, either
from scratch or as perturbations of a base environment.
"""

from .config import EnvironmentOptions, FactorRows, default_options
from .errors import (
    AsymmetryInvariantError,
    EnvironmentGenerationError,
    InvalidArgumentError,
    NotPositiveSemidefiniteWarning,
    UnknownModelError,
)
from .generators import STRATEGIES, EnvironmentGenerator, EnvironmentModel, generate_environment, scalar_offset, show_defaults
from .operators import enforce_psd, enforce_symmetry, lognormal_parameters, sqrtm_spd
from .utilities import parse_size_or_base, random_correlation, select_odorants

__all__ = [
    "EnvironmentOptions",
    "FactorRows",
    "default_options",
    "AsymmetryInvariantError",
    "EnvironmentGenerationError",
    "InvalidArgumentError",
    "NotPositiveSemidefiniteWarning",
    "UnknownModelError",
    "STRATEGIES",
    "EnvironmentGenerator",
    "EnvironmentModel",
    "generate_environment",
    "scalar_offset",
    "show_defaults",
    "enforce_psd",
    "enforce_symmetry",
    "lognormal_parameters",
    "sqrtm_spd",
    "parse_size_or_base",
    "random_correlation",
    "select_odorants",
]
