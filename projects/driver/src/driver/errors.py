"""Errors raised by the driver layer."""


class InvalidURLError(ValueError):
    """Raised when a dev database URL cannot be parsed."""


class UnsupportedSchemeError(ValueError):
    """Raised when a dev database URL uses a scheme with no known dialect."""


class DriverError(Exception):
    """Raised when the dev database cannot serve a driver request."""


class OperationCancelledError(Exception):
    """Raised when the caller cancelled the running operation."""


class DeadlineExceededError(TimeoutError):
    """Raised when the caller's deadline passed before the operation finished."""
