"""Custom exceptions for the engine."""


class ConfigurationError(ValueError):
    """Raised when a capacity, bucket width, density or extent is invalid."""

    pass


class DegenerateInputWarning(UserWarning):
    """Emitted when an empty or zero-range input is replaced by fallback values."""

    pass


class TransientGenerationFailure(Exception):
    """Raised when a batch of samples could not be produced for a request."""

    pass
