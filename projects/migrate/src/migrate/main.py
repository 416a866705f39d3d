"""Migration engine creating SQLAlchemy tables on a dev database."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Self

from driver import (
    DRIVERS,
    Deadline,
    Dialect,
    Driver,
    create_dev_engine,
    parse_dev_url,
)
from sqlalchemy import Connection, Engine, insert, select
from sqlalchemy.schema import CreateColumn

from migrate.desired import TYPE_TABLE, TYPES, desired_schema, type_ranges
from migrate.differ import diff
from migrate.errors import MigrateError
from migrate.types import (
    AddColumn,
    AddIndex,
    AddTable,
    Change,
    DiffHook,
    Differ,
    PlanStatus,
    Skip,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from sqlalchemy import Table

logger = getLogger(__name__)


class Migrator:
    """Plans and applies the creation of tables on a dev database.

    The differ computing the changes can be wrapped through ``diff_hook``;
    a hook returning ``Skip`` ends the run once the desired schema is known,
    without touching the database.
    """

    def __init__(
        self,
        engine: Engine,
        dialect: Dialect,
        *,
        global_unique_id: bool = False,
        diff_hook: DiffHook | None = None,
        deadline: Deadline | None = None,
    ) -> None:
        """Initialize a migrator on an engine owned by the caller."""
        self._engine = engine
        self._dialect = dialect
        self._global_unique_id = global_unique_id
        self._diff_hook = diff_hook
        self._deadline = deadline or Deadline()

    @classmethod
    def from_url(
        cls,
        dev_url: str,
        dialect: Dialect | None = None,
        *,
        global_unique_id: bool = False,
        diff_hook: DiffHook | None = None,
        deadline: Deadline | None = None,
    ) -> Self:
        """Create a migrator owning a new engine for a dev database URL."""
        target = parse_dev_url(dev_url)
        if dialect is not None and dialect != target.dialect:
            msg = f"dialect {dialect} does not match dev url dialect {target.dialect}"
            raise MigrateError(msg)
        return cls(
            create_dev_engine(dev_url, deadline),
            target.dialect,
            global_unique_id=global_unique_id,
            diff_hook=diff_hook,
            deadline=deadline,
        )

    def __enter__(self) -> Self:
        """Return the migrator; its engine is disposed on exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Dispose of the engine."""
        self.dispose()

    def dispose(self) -> None:
        """Close every pooled connection of the engine."""
        self._engine.dispose()

    def _differ(self) -> Differ:
        if self._diff_hook is None:
            return diff
        return self._diff_hook(diff)

    def _existing_types(self, driver: Driver, table_names: set[str]) -> list[str]:
        """Read the registered type names, in key range order."""
        if not self._global_unique_id or TYPE_TABLE not in table_names:
            return []
        rows = driver.connection.execute(select(TYPES.c.type).order_by(TYPES.c.id))
        return list(rows.scalars())

    def create(self, *tables: Table) -> PlanStatus:
        """Create the tables, or the parts of them missing from the dev database.

        Returns:
            SKIPPED when the differ returned Skip, UNCHANGED when nothing was
            missing and APPLIED otherwise

        """
        self._deadline.check("connecting to dev database")
        with self._engine.connect() as connection:
            driver = DRIVERS[self._dialect](connection)
            current = driver.inspect_schema()
            current_names = {table["name"] for table in current["tables"]}
            existing_types = self._existing_types(driver, current_names)
            desired = desired_schema(
                driver,
                tables,
                global_unique_id=self._global_unique_id,
                existing_types=existing_types,
            )

            result = self._differ()(current, desired)
            if isinstance(result, Skip):
                logger.debug("Planning skipped: %s", result.reason or "no reason")
                return PlanStatus.SKIPPED
            if not result:
                logger.debug("Schema %s is up to date", desired["name"])
                return PlanStatus.UNCHANGED

            self._deadline.check("applying changes")
            by_name = {table.name: table for table in tables}
            by_name.setdefault(TYPE_TABLE, TYPES)
            for change in result:
                self._apply(connection, by_name, change)
            if self._global_unique_id:
                self._register_types(driver, tables, existing_types, result)
            connection.commit()
            logger.info("Applied %d changes to schema %s", len(result), desired["name"])
            return PlanStatus.APPLIED

    def _apply(
        self,
        connection: Connection,
        tables: dict[str, Table],
        change: Change,
    ) -> None:
        match change:
            case AddTable(table=spec):
                logger.debug("Creating table %s", spec["name"])
                tables[spec["name"]].create(connection)
            case AddColumn(table=table_name, column=spec):
                logger.debug("Adding column %s.%s", table_name, spec["name"])
                column = tables[table_name].columns[spec["name"]]
                preparer = connection.dialect.identifier_preparer
                definition = CreateColumn(column).compile(dialect=connection.dialect)
                connection.exec_driver_sql(
                    f"ALTER TABLE {preparer.quote(table_name)} ADD COLUMN {definition}",
                )
            case AddIndex(table=table_name, index=spec):
                logger.debug("Adding index %s on %s", spec["name"], table_name)
                index = next(
                    (i for i in tables[table_name].indexes if i.name == spec["name"]),
                    None,
                )
                if index is None:
                    msg = (
                        f"cannot add unique constraint {spec['name']!r} "
                        f"to existing table {table_name!r}"
                    )
                    raise MigrateError(msg)
                index.create(connection)

    def _register_types(
        self,
        driver: Driver,
        tables: Sequence[Table],
        existing_types: Sequence[str],
        changes: Sequence[Change],
    ) -> None:
        """Insert new type rows and move key generators to their ranges."""
        created = {
            change.table["name"] for change in changes if isinstance(change, AddTable)
        }
        ranges = type_ranges(existing_types, (table.name for table in tables))
        for name in ranges:
            if name not in existing_types:
                driver.connection.execute(insert(TYPES).values(type=name))
        for table in tables:
            column = table.autoincrement_column
            start = ranges[table.name]
            if table.name not in created or column is None or not start:
                continue
            if sql := driver.auto_increment_start_sql(table.name, column.name, start):
                driver.connection.exec_driver_sql(sql)
