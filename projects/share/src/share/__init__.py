"""Publishing schema documents to the visualization service."""

from share.errors import (
    InvalidEndpointError,
    RateLimitedError,
    ShareError,
    ShareFailedError,
    ShareRequestError,
    TransportError,
    VisualizeRequestError,
)
from share.main import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT, ShareConfig, share_hcl
from share.queries import (
    SHARE_VISUALIZATION_MUTATION,
    VISUALIZE_MUTATION,
    GraphQLRequest,
)
from share.transport import USER_AGENT, HTTPTransport, Response, Transport

__all__ = [
    "DEFAULT_ENDPOINT",
    "DEFAULT_TIMEOUT",
    "SHARE_VISUALIZATION_MUTATION",
    "USER_AGENT",
    "VISUALIZE_MUTATION",
    "GraphQLRequest",
    "HTTPTransport",
    "InvalidEndpointError",
    "RateLimitedError",
    "Response",
    "ShareConfig",
    "ShareError",
    "ShareFailedError",
    "ShareRequestError",
    "Transport",
    "TransportError",
    "VisualizeRequestError",
    "share_hcl",
]
