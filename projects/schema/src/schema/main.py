"""Main module for schema document extraction."""

from logging import getLogger
from pathlib import Path
from typing import NamedTuple

from driver import (
    Deadline,
    Dialect,
    DriverError,
    SchemaSpec,
    open_driver,
    parse_dev_url,
)
from migrate import Differ, DiffResult, MigrateError, Migrator, PlanStatus, Skip
from sqlalchemy.exc import SQLAlchemyError

from schema.errors import (
    ClientOpenError,
    MarshalError,
    NoSchemaCapturedError,
    NormalizeError,
    SchemaPlanError,
)
from schema.loader import load_tables

logger = getLogger(__name__)


class HCLOptions(NamedTuple):
    """Options of a schema document extraction."""

    schema_path: Path
    dialect: Dialect
    dev_url: str
    global_unique_id: bool = False


class SchemaCapture:
    """Diff hook recording the desired schema and skipping the migration.

    Passed as the migrator's diff hook, it replaces the differ: the desired
    schema is stored on ``schema`` and planning stops with ``Skip``.
    """

    def __init__(self) -> None:
        """Start with nothing captured."""
        self.schema: SchemaSpec | None = None
        self.calls = 0

    def __call__(self, _differ: Differ) -> Differ:
        """Wrap the migrator's differ."""

        def capture(_current: SchemaSpec, desired: SchemaSpec) -> DiffResult:
            self.schema = desired
            self.calls += 1
            return Skip("desired schema captured")

        return capture


def capture_desired_schema(
    options: HCLOptions,
    deadline: Deadline,
) -> SchemaSpec:
    """Run the migration engine against the dev database to resolve the schema.

    The dev URL is resolved before the models are loaded.
    """
    parse_dev_url(options.dev_url)
    tables = load_tables(options.schema_path)
    deadline.check("planning schema")

    capture = SchemaCapture()
    try:
        with Migrator.from_url(
            options.dev_url,
            options.dialect,
            global_unique_id=options.global_unique_id,
            diff_hook=capture,
            deadline=deadline,
        ) as migrator:
            status = migrator.create(*tables)
    except (SQLAlchemyError, MigrateError, DriverError) as err:
        msg = f"creating schema: {err}"
        raise SchemaPlanError(msg) from err
    logger.debug("Planning finished with status %s", status)

    if capture.schema is None:
        msg = f"migration engine finished ({status}) without reporting a schema"
        raise NoSchemaCapturedError(msg)
    if status is not PlanStatus.SKIPPED:
        logger.warning("Migration engine applied changes to the dev database")
    return capture.schema


def generate_hcl(options: HCLOptions, *, deadline: Deadline | None = None) -> bytes:
    """Generate the schema document of the models at ``options.schema_path``.

    The dev URL is checked first: a malformed or unsupported one raises its
    own error, with no stage, before any model is loaded.

    Args:
        options: Models location, dialect and dev database to resolve against
        deadline: Cancels the extraction or bounds its duration

    Returns:
        The marshaled schema document

    Raises:
        InvalidURLError: The dev URL is malformed
        UnsupportedSchemeError: The dev URL names no supported dialect
        ExtractionError: A stage of the extraction failed

    """
    deadline = deadline or Deadline()
    schema = capture_desired_schema(options, deadline)

    deadline.check("opening sql client")
    try:
        with open_driver(options.dev_url, deadline) as driver:
            if driver.supports_normalize:
                try:
                    schema = driver.normalize_schema(schema)
                except (SQLAlchemyError, DriverError) as err:
                    msg = f"normalizing schema: {err}"
                    raise NormalizeError(msg) from err
            try:
                return driver.marshal_spec(schema)
            except (SQLAlchemyError, KeyError, TypeError, ValueError) as err:
                msg = f"marshaling schema: {err}"
                raise MarshalError(msg) from err
    except SQLAlchemyError as err:
        msg = f"opening sql client: {err}"
        raise ClientOpenError(msg) from err
