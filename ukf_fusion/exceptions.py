"""
Exception types raised by the unscented Kalman filter and its I/O helpers.
"""


class UKFError(Exception):
    """Base class for all errors raised by ukf_fusion."""


class NumericalError(UKFError):
    """
    Raised when a matrix operation cannot be carried out.

    Typical cause is an augmented covariance that is not positive definite,
    so no Cholesky factor exists for sigma point generation. The filter
    leaves its state untouched when this is raised.
    """


class MeasurementError(UKFError, ValueError):
    """Raised for malformed measurements or measurement log lines."""


class ConfigError(UKFError, ValueError):
    """Raised for invalid filter configuration values."""
