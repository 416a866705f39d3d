"""Tests for the HTTP transport against a local stub server."""

import json
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from typing import Any, ClassVar

import pytest

from share import (
    USER_AGENT,
    HTTPTransport,
    ShareConfig,
    TransportError,
    share_hcl,
)


class StubHandler(BaseHTTPRequestHandler):
    """Answers like the visualization service and records requests."""

    requests: ClassVar[list[dict[str, Any]]] = []

    def do_POST(self) -> None:  # noqa: N802
        body = self.rfile.read(int(self.headers["Content-Length"]))
        request = json.loads(body)
        self.requests.append(
            {
                "path": self.path,
                "headers": dict(self.headers),
                "body": request,
            },
        )
        if "extID" in request["variables"]:
            data: dict[str, Any] = {"shareVisualization": {"success": True}}
        else:
            data = {"visualize": {"node": {"extID": "23098224"}}}
        payload = json.dumps({"data": data}).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        pass


@pytest.fixture(name="endpoint")
def run_stub_server() -> Iterator[str]:
    """Serve the stub on a free local port."""
    StubHandler.requests = []
    server = HTTPServer(("127.0.0.1", 0), StubHandler)
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}/api/query"
    server.shutdown()
    server.server_close()
    thread.join()


def test_headers_and_body(endpoint: str) -> None:
    """Test every request identifies the client and posts JSON."""
    transport = HTTPTransport()
    response = transport.execute(endpoint, b'{"query":"q","variables":{}}', timeout=5)
    assert response.status == 200
    assert json.loads(response.body)["data"]["visualize"]["node"]["extID"] == "23098224"

    (request,) = StubHandler.requests
    assert request["path"] == "/api/query"
    assert request["headers"]["User-Agent"] == USER_AGENT == "SQLAViz"
    assert request["headers"]["Content-Type"] == "application/json"
    assert request["body"] == {"query": "q", "variables": {}}


def test_share_through_stub(endpoint: str) -> None:
    """Test the whole protocol over HTTP."""
    document = b'table "users" {\n}\nschema "main" {\n}\n'
    link = share_hcl(document, "SQLITE", ShareConfig(endpoint=endpoint, timeout=5))
    host = endpoint.removesuffix("/api/query")
    assert link == f"{host}/explore/23098224"
    assert [request["body"]["variables"] for request in StubHandler.requests] == [
        {"text": document.decode(), "driver": "SQLITE"},
        {"extID": "23098224"},
    ]


def test_connection_error() -> None:
    """Test connection failures are wrapped as transport errors."""
    server = HTTPServer(("127.0.0.1", 0), StubHandler)
    host, port = server.server_address[:2]
    server.server_close()
    with pytest.raises(TransportError, match="making http request"):
        HTTPTransport().execute(f"http://{host}:{port}/api/query", b"{}", timeout=5)
