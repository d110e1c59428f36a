"""Exception hierarchy shared by the streaming K-means core and its surfaces."""


class StreamingKMeansError(Exception):
    """Base class for every error raised by the streaming K-means package."""


class ConfigurationError(StreamingKMeansError, ValueError):
    """Raised at setup time when clustering settings are invalid."""


class DimensionMismatchError(StreamingKMeansError, ValueError):
    """Raised when a vector or batch does not have the model dimensionality."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class InvariantViolationError(StreamingKMeansError, RuntimeError):
    """Raised when an internal invariant of the update rule does not hold."""


class InvalidVectorError(DimensionMismatchError):
    """Raised when a vector has the right dimensionality but holds NaN or inf."""
