class EnvironmentGenerationError(Exception):
    """Base class for errors raised while generating an environment covariance matrix."""


class InvalidArgumentError(EnvironmentGenerationError, ValueError):
    """A size, base matrix, or option value is outside its allowed domain."""


class UnknownModelError(EnvironmentGenerationError, ValueError):
    """The requested environment model is not one of the available strategies."""


class AsymmetryInvariantError(EnvironmentGenerationError, RuntimeError):
    """
    A strategy produced a matrix whose asymmetry exceeds the strict tolerance.

    This points to a bug in the strategy rather than a recoverable condition.
    """


class NotPositiveSemidefiniteWarning(UserWarning):
    """The generated matrix has an eigenvalue below the negative tolerance."""
