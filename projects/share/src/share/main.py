"""Share client publishing schema documents to the visualization service."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from json import JSONDecodeError, dumps, loads
from logging import getLogger
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from driver import Deadline

from share.errors import (
    InvalidEndpointError,
    RateLimitedError,
    ShareFailedError,
    ShareRequestError,
    TransportError,
    VisualizeRequestError,
)
from share.queries import GraphQLRequest, share_request, visualize_request
from share.transport import HTTPTransport, Transport

if TYPE_CHECKING:
    from urllib.parse import SplitResult

logger = getLogger(__name__)

DEFAULT_ENDPOINT = "https://gh.atlasgo.cloud/api/query"
DEFAULT_TIMEOUT = 60.0


@dataclass
class ShareConfig:
    """Settings of the share client.

    Attributes:
        endpoint: GraphQL endpoint; its scheme and host also form the link
        transport: Executes the requests, an HTTP transport by default
        timeout: Seconds allowed to each request

    """

    endpoint: str = DEFAULT_ENDPOINT
    transport: Transport = field(default_factory=HTTPTransport)
    timeout: float = DEFAULT_TIMEOUT


def parse_endpoint(endpoint: str) -> SplitResult:
    """Split an endpoint URL, requiring a scheme and a host."""
    try:
        parsed = urlsplit(endpoint)
    except ValueError as err:
        msg = f"parsing endpoint: {err}"
        raise InvalidEndpointError(msg) from err
    if not parsed.scheme or not parsed.netloc:
        msg = f"parsing endpoint: {endpoint!r} has no scheme or host"
        raise InvalidEndpointError(msg)
    return parsed


def execute_query(
    config: ShareConfig,
    request: GraphQLRequest,
    stage: str,
    deadline: Deadline,
) -> dict[str, Any]:
    """Send a GraphQL request and return the ``data`` of its response.

    Raises:
        RateLimitedError: The service answered with HTTP 429
        TransportError: The request failed or the response was unusable

    """
    deadline.check(stage)
    body = dumps(request, separators=(",", ":")).encode()
    response = config.transport.execute(
        config.endpoint,
        body,
        timeout=deadline.bound(config.timeout),
    )
    if response.status == HTTPStatus.TOO_MANY_REQUESTS:
        raise RateLimitedError(stage)
    if not HTTPStatus.OK <= response.status < HTTPStatus.MULTIPLE_CHOICES:
        msg = f"status code: {response.status}"
        raise TransportError(msg)

    try:
        payload = loads(response.body)
    except (JSONDecodeError, UnicodeDecodeError) as err:
        msg = f"decoding response: {err}"
        raise TransportError(msg) from err
    if not isinstance(payload, dict):
        msg = "decoding response: not a JSON object"
        raise TransportError(msg)
    if errors := payload.get("errors"):
        messages = "; ".join(
            str(error.get("message", error)) if isinstance(error, dict) else str(error)
            for error in errors
        )
        msg = f"graphql errors: {messages}"
        raise TransportError(msg)
    data = payload.get("data")
    if not isinstance(data, dict):
        msg = "decoding response: missing data"
        raise TransportError(msg)
    return data


def _lookup(data: dict[str, Any], *path: str) -> Any:  # noqa: ANN401
    """Follow keys through nested objects, None when one is missing."""
    value: Any = data
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def share_hcl(
    document: bytes,
    driver_tag: str,
    config: ShareConfig | None = None,
    *,
    deadline: Deadline | None = None,
) -> str:
    """Upload a schema document and return its public link.

    Args:
        document: Marshaled schema document
        driver_tag: Driver the service renders the document for, e.g. SQLITE
        config: Endpoint, transport and timeout, defaults when omitted
        deadline: Cancels the calls or bounds their duration

    Returns:
        The link to the shared visualization

    """
    config = config or ShareConfig()
    deadline = deadline or Deadline()
    endpoint = parse_endpoint(config.endpoint)

    try:
        data = execute_query(
            config,
            visualize_request(document, driver_tag),
            "visualize request",
            deadline,
        )
    except RateLimitedError:
        raise
    except (TransportError, UnicodeDecodeError) as err:
        msg = f"visualize request: {err}"
        raise VisualizeRequestError(msg) from err
    ext_id = _lookup(data, "visualize", "node", "extID")
    if not isinstance(ext_id, str) or not ext_id:
        msg = "visualize request: response has no extID"
        raise VisualizeRequestError(msg)
    logger.debug("Uploaded visualization %s", ext_id)

    try:
        data = execute_query(config, share_request(ext_id), "share request", deadline)
    except RateLimitedError:
        raise
    except TransportError as err:
        msg = f"share request: {err}"
        raise ShareRequestError(msg) from err
    if _lookup(data, "shareVisualization", "success") is not True:
        raise ShareFailedError(ext_id)

    return f"{endpoint.scheme}://{endpoint.netloc}/explore/{ext_id}"
