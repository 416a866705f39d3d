"""Cancellation and deadline signal shared by extraction and sharing."""

from threading import Event
from time import monotonic

from driver.errors import DeadlineExceededError, OperationCancelledError


class Deadline:
    """Cancellation token with an optional expiry.

    A deadline is checked between stages of an operation and bounds the
    timeouts handed to database drivers and HTTP clients, so that a blocked
    call never outlives it. ``cancel`` may be called from any thread; it
    stops the next check, while a call already in flight is bounded only by
    its timeout.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Create a deadline expiring ``timeout`` seconds from now, or never."""
        self._expires_at = None if timeout is None else monotonic() + timeout
        self._cancelled = Event()

    def cancel(self) -> None:
        """Cancel every operation watching this deadline."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """Whether ``cancel`` has been called."""
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before expiry, or None for no expiry."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - monotonic())

    def bound(self, timeout: float | None) -> float | None:
        """Clamp a timeout so it does not extend past the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def check(self, stage: str) -> None:
        """Raise if the operation was cancelled or ran out of time."""
        if self.cancelled:
            msg = f"{stage}: operation cancelled"
            raise OperationCancelledError(msg)
        if self._expires_at is not None and monotonic() >= self._expires_at:
            msg = f"{stage}: deadline exceeded"
            raise DeadlineExceededError(msg)
