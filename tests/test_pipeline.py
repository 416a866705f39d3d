"""Tests chaining schema extraction into the share protocol."""

import json
from pathlib import Path
from typing import Any

import pytest

from driver import Dialect
from schema import HCLOptions, generate_hcl
from share import Response, ShareConfig, share_hcl
from sqlaviz.cli import DEFAULT_DEV_URL

MODELS = """\
from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
)
"""


class RecordingTransport:
    """Transport answering the visualize and share mutations in turn."""

    def __init__(self, *responses: dict[str, Any]) -> None:
        self.responses = [Response(200, json.dumps(r).encode()) for r in responses]
        self.bodies: list[dict[str, Any]] = []
        self.endpoints: list[str] = []

    def execute(self, endpoint: str, body: bytes, *, timeout: float | None) -> Response:
        assert timeout is not None
        self.endpoints.append(endpoint)
        self.bodies.append(json.loads(body))
        return self.responses.pop(0)


@pytest.fixture(name="models")
def create_models(tmp_path: Path) -> Path:
    """Models file defining users(id, name)."""
    path = tmp_path / "models.py"
    path.write_text(MODELS)
    return path


@pytest.mark.parametrize(
    ("endpoint", "link"),
    [
        ("https://gh.atlasgo.cloud/api/query", "https://gh.atlasgo.cloud/explore/23098224"),
        ("http://localhost:8080/api/query", "http://localhost:8080/explore/23098224"),
    ],
)
def test_extract_and_share(models: Path, endpoint: str, link: str) -> None:
    """Test the extracted document is uploaded unchanged and the link returned."""
    document = generate_hcl(HCLOptions(models, Dialect.SQLITE, DEFAULT_DEV_URL))
    transport = RecordingTransport(
        {"data": {"visualize": {"node": {"extID": "23098224"}}}},
        {"data": {"shareVisualization": {"success": True}}},
    )

    shared = share_hcl(
        document,
        "SQLITE",
        ShareConfig(endpoint=endpoint, transport=transport),
    )

    assert shared == link
    assert transport.endpoints == [endpoint, endpoint]
    visualize, share = transport.bodies
    assert visualize["variables"]["text"].encode() == document
    assert visualize["variables"]["driver"] == "SQLITE"
    assert share["variables"] == {"extID": "23098224"}
    assert 'table "users" {' in visualize["variables"]["text"]
