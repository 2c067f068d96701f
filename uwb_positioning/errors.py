"""
Error types raised by the positioning engine.
"""


class PositioningError(Exception):
    """Base class for all positioning engine errors."""


class ConfigurationError(PositioningError):
    """Malformed seed or tuning parameters; fatal to session start."""


class NumericalError(PositioningError):
    """Innovation covariance is singular or ill-conditioned."""


class InputError(PositioningError):
    """A delivered fix carries non-finite or malformed components."""
