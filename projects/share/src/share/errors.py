"""Errors raised while sharing a schema document."""


class ShareError(Exception):
    """Base class for failures of the share protocol."""


class InvalidEndpointError(ShareError, ValueError):
    """Raised when the configured endpoint has no scheme or host."""


class TransportError(ShareError):
    """Raised by a transport when a request cannot be completed."""


class VisualizeRequestError(ShareError):
    """Raised when the visualize call fails."""


class ShareRequestError(ShareError):
    """Raised when the share call fails."""


class ShareFailedError(ShareError):
    """Raised when the service refuses to share a visualization."""

    def __init__(self, ext_id: str) -> None:
        """Keep the external identifier of the visualization."""
        super().__init__(f"could not share the visualization: {ext_id}")
        self.ext_id = ext_id


class RateLimitedError(ShareError):
    """Raised when the service answers with HTTP 429."""

    def __init__(self, stage: str) -> None:
        """Keep the stage that was rate limited."""
        super().__init__(f"{stage}: rate limited, try again in a few minutes")
        self.stage = stage
