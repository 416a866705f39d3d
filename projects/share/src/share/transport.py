"""Request executors used by the share client."""

from __future__ import annotations

from logging import getLogger
from typing import NamedTuple, Protocol

from requests import RequestException, Session

from share.errors import TransportError

logger = getLogger(__name__)

USER_AGENT = "SQLAViz"


class Response(NamedTuple):
    """Status and raw body of a response."""

    status: int
    body: bytes


class Transport(Protocol):
    """Executes a request body against an endpoint."""

    def execute(self, endpoint: str, body: bytes, *, timeout: float | None) -> Response:
        """Send the body and return the response, whatever its status."""
        ...


class HTTPTransport:
    """Transport posting JSON bodies over HTTP."""

    def __init__(self, session: Session | None = None) -> None:
        """Use the given session, or a new one."""
        self.session = session or Session()

    def execute(self, endpoint: str, body: bytes, *, timeout: float | None) -> Response:
        """POST the body with the client identification headers."""
        headers = {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }
        logger.debug("POST %s (%d bytes)", endpoint, len(body))
        try:
            response = self.session.post(
                endpoint,
                data=body,
                headers=headers,
                timeout=timeout,
            )
        except RequestException as err:
            msg = f"making http request: {err}"
            raise TransportError(msg) from err
        return Response(response.status_code, response.content)
