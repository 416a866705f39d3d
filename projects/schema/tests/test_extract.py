"""Tests for schema document extraction on SQLite dev databases."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, Text, inspect
from sqlalchemy.exc import SQLAlchemyError

from driver import (
    Deadline,
    Dialect,
    DriverError,
    InvalidURLError,
    OperationCancelledError,
    SchemaSpec,
    UnsupportedSchemeError,
    create_dev_engine,
)
from migrate import Migrator, PlanStatus
from schema import (
    ClientOpenError,
    HCLOptions,
    MarshalError,
    NoSchemaCapturedError,
    NormalizeError,
    SchemaCapture,
    SchemaLoadError,
    SchemaPlanError,
    generate_hcl,
)

DEV_URL = "sqlite3://file?mode=memory&cache=shared&_fk=1"

USERS_MODELS = """\
from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
)
"""

USERS_DOCUMENT = """\
table "users" {
  schema = schema.main
  column "id" {
    null           = false
    type           = integer
    auto_increment = true
  }
  column "name" {
    null = false
    type = text
  }
  primary_key {
    columns = [column.id]
  }
}
schema "main" {
}
"""


@pytest.fixture(name="models")
def create_models(tmp_path: Path) -> Path:
    """Models file defining a users table."""
    path = tmp_path / "models.py"
    path.write_text(USERS_MODELS)
    return path


@pytest.fixture(name="options")
def create_options(models: Path) -> HCLOptions:
    """Extraction options on the default in-memory dev database."""
    return HCLOptions(models, Dialect.SQLITE, DEV_URL)


def test_users_document(options: HCLOptions) -> None:
    """Test the document of a single users table."""
    assert generate_hcl(options).decode() == USERS_DOCUMENT


def test_extraction_is_deterministic(options: HCLOptions) -> None:
    """Test repeated extractions produce identical bytes."""
    assert generate_hcl(options) == generate_hcl(options)


def test_global_unique_id_document(options: HCLOptions) -> None:
    """Test the type table is part of the document."""
    document = generate_hcl(options._replace(global_unique_id=True)).decode()
    assert document.startswith('table "global_id_types" {\n')
    assert '  index "global_id_types_type_key" {\n' in document
    assert 'table "users" {' in document


def test_capture_runs_once_and_skips(tmp_path: Path) -> None:
    """Test the capture hook fires once and nothing reaches the dev database."""
    dev_url = f"sqlite://{tmp_path}/dev.db"
    users = Table(
        "users",
        MetaData(),
        Column("id", Integer, primary_key=True),
        Column("name", Text, nullable=False),
    )
    capture = SchemaCapture()
    with Migrator.from_url(dev_url, diff_hook=capture) as migrator:
        assert migrator.create(users) is PlanStatus.SKIPPED

    assert capture.calls == 1
    assert capture.schema is not None
    assert [table["name"] for table in capture.schema["tables"]] == ["users"]
    engine = create_dev_engine(dev_url)
    assert inspect(engine).get_table_names() == []
    engine.dispose()


def test_missing_models(tmp_path: Path) -> None:
    """Test loading failures stop the extraction."""
    options = HCLOptions(tmp_path / "missing.py", Dialect.SQLITE, DEV_URL)
    with pytest.raises(SchemaLoadError):
        generate_hcl(options)


@pytest.mark.parametrize(
    ("dev_url", "error"),
    [
        ("oracle://localhost/dev", UnsupportedSchemeError),
        ("not a url", InvalidURLError),
    ],
)
def test_bad_dev_url_is_checked_first(
    tmp_path: Path,
    dev_url: str,
    error: type[Exception],
) -> None:
    """Test a bad dev URL is reported before the models are loaded."""
    options = HCLOptions(tmp_path / "missing.py", Dialect.SQLITE, dev_url)
    with pytest.raises(error):
        generate_hcl(options)


def test_plan_error(options: HCLOptions) -> None:
    """Test migration engine failures are wrapped with their stage."""
    mismatched = options._replace(dialect=Dialect.MYSQL)
    with pytest.raises(SchemaPlanError, match="^creating schema: "):
        generate_hcl(mismatched)


def test_no_schema_captured(
    options: HCLOptions,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test a run that never reaches the differ is an error."""

    class SilentMigrator:
        def __init__(self, *_args: object, **_kwargs: object) -> None:
            pass

        @classmethod
        def from_url(cls, *args: object, **kwargs: object) -> "SilentMigrator":
            return cls(*args, **kwargs)

        def __enter__(self) -> "SilentMigrator":
            return self

        def __exit__(self, *_exc: object) -> None:
            pass

        def create(self, *_tables: Table) -> PlanStatus:
            return PlanStatus.UNCHANGED

    monkeypatch.setattr("schema.main.Migrator", SilentMigrator)
    with pytest.raises(NoSchemaCapturedError):
        generate_hcl(options)


def fake_driver(
    *,
    normalize: Exception | None = None,
    marshal: Exception | None = None,
) -> SimpleNamespace:
    """Driver stand-in failing where asked."""

    def normalize_schema(schema: SchemaSpec) -> SchemaSpec:
        if normalize:
            raise normalize
        return schema

    def marshal_spec(_schema: SchemaSpec) -> bytes:
        if marshal:
            raise marshal
        return b"document\n"

    return SimpleNamespace(
        supports_normalize=True,
        normalize_schema=normalize_schema,
        marshal_spec=marshal_spec,
    )


def test_normalize_is_used(options: HCLOptions, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test drivers with a normalizer get to normalize the captured schema."""
    normalized: list[SchemaSpec] = []
    driver = fake_driver()
    normalize_schema = driver.normalize_schema

    def record(schema: SchemaSpec) -> SchemaSpec:
        normalized.append(schema)
        return normalize_schema(schema)

    driver.normalize_schema = record

    @contextmanager
    def open_fake(*_args: object) -> Iterator[SimpleNamespace]:
        yield driver

    monkeypatch.setattr("schema.main.open_driver", open_fake)
    assert generate_hcl(options) == b"document\n"
    assert [table["name"] for table in normalized[0]["tables"]] == ["users"]


@pytest.mark.parametrize(
    ("driver", "error", "prefix"),
    [
        (fake_driver(normalize=DriverError("boom")), NormalizeError, "normalizing"),
        (fake_driver(marshal=KeyError("type")), MarshalError, "marshaling"),
    ],
)
def test_driver_failures(
    options: HCLOptions,
    monkeypatch: pytest.MonkeyPatch,
    driver: SimpleNamespace,
    error: type[Exception],
    prefix: str,
) -> None:
    """Test normalize and marshal failures are wrapped with their stage."""

    @contextmanager
    def open_fake(*_args: object) -> Iterator[SimpleNamespace]:
        yield driver

    monkeypatch.setattr("schema.main.open_driver", open_fake)
    with pytest.raises(error, match=f"^{prefix} schema: ") as info:
        generate_hcl(options)
    assert info.value.__cause__ is not None


def test_client_open_error(options: HCLOptions, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test a dev database that cannot be reopened is reported."""

    @contextmanager
    def open_failing(*_args: object) -> Iterator[SimpleNamespace]:
        msg = "connection refused"
        raise SQLAlchemyError(msg)
        yield SimpleNamespace()

    monkeypatch.setattr("schema.main.open_driver", open_failing)
    with pytest.raises(ClientOpenError, match="^opening sql client: "):
        generate_hcl(options)


def test_cancelled(options: HCLOptions) -> None:
    """Test a cancelled extraction stops before planning."""
    deadline = Deadline()
    deadline.cancel()
    with pytest.raises(OperationCancelledError, match="planning schema"):
        generate_hcl(options, deadline=deadline)
