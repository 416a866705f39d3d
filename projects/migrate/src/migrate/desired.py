"""Desired schema computation from SQLAlchemy tables."""

from collections.abc import Iterable, Sequence
from typing import Any

from driver import (
    ColumnSpec,
    Driver,
    ForeignKeySpec,
    IndexSpec,
    SchemaSpec,
    TableSpec,
)
from driver.base import constraint_name
from sqlalchemy import (
    Column,
    DefaultClause,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.engine import Dialect as SQLDialect

from migrate.errors import MigrateError

# Global unique IDs: every table owns a 2**32 wide range of keys, assigned by
# the position of its name in the type table
TYPE_TABLE = "global_id_types"
RANGE_BITS = 32

TYPES = Table(
    TYPE_TABLE,
    MetaData(),
    Column("id", Integer, primary_key=True),
    Column("type", String(255), nullable=False, unique=True),
)


def _name(name: object) -> str | None:
    """Return a constraint name, or None while SQLAlchemy has not assigned one."""
    return name if isinstance(name, str) and name else None


def server_default_sql(column: Column[Any], dialect: SQLDialect) -> str | None:
    """Render the server default of a column as SQL text."""
    default = column.server_default
    if not isinstance(default, DefaultClause):
        return None
    if isinstance(default.arg, str):
        return "'" + default.arg.replace("'", "''") + "'"
    return str(default.arg.compile(dialect=dialect))


def column_spec(driver: Driver, column: Column[Any], *, generated: bool) -> ColumnSpec:
    """Derive the desired ColumnSpec of a SQLAlchemy column."""
    spec = ColumnSpec(
        name=column.name,
        type=driver.resolve_type(column.type),
        null=bool(column.nullable),
    )
    if (default := server_default_sql(column, driver.connection.dialect)) is not None:
        spec["default"] = default
    if generated:
        identity = column.identity
        driver.mark_auto_increment(spec, always=bool(identity and identity.always))
    if collation := getattr(column.type, "collation", None):
        spec["collate"] = str(collation)
    if column.comment:
        spec["comment"] = column.comment
    return spec


def index_specs(table: Table) -> list[IndexSpec]:
    """Derive indexes and unique constraints, sorted by name."""
    indexes: list[IndexSpec] = []
    for index in table.indexes:
        columns = [column.name for column in index.columns]
        indexes.append(
            IndexSpec(
                name=_name(index.name) or constraint_name(table.name, columns, "idx"),
                columns=columns,
                unique=bool(index.unique),
            ),
        )
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            columns = [column.name for column in constraint.columns]
            indexes.append(
                IndexSpec(
                    name=_name(constraint.name)
                    or constraint_name(table.name, columns, "key"),
                    columns=columns,
                    unique=True,
                ),
            )
    return sorted(indexes, key=lambda index: index["name"])


def _action(action: str) -> str:
    """Render a referential action keyword, e.g. SET NULL -> SET_NULL."""
    return action.upper().replace(" ", "_")


def foreign_key_specs(table: Table) -> list[ForeignKeySpec]:
    """Derive foreign key constraints, sorted by name."""
    foreign_keys: list[ForeignKeySpec] = []
    for constraint in table.foreign_key_constraints:
        columns = [element.parent.name for element in constraint.elements]
        spec = ForeignKeySpec(
            name=_name(constraint.name) or constraint_name(table.name, columns, "fkey"),
            columns=columns,
            ref_table=constraint.referred_table.name,
            ref_columns=[element.column.name for element in constraint.elements],
        )
        if constraint.onupdate:
            spec["on_update"] = _action(constraint.onupdate)
        if constraint.ondelete:
            spec["on_delete"] = _action(constraint.ondelete)
        foreign_keys.append(spec)
    return sorted(foreign_keys, key=lambda fk: fk["name"])


def table_spec(driver: Driver, table: Table) -> TableSpec:
    """Derive the desired TableSpec of a SQLAlchemy table."""
    generated = table.autoincrement_column
    spec = TableSpec(
        name=table.name,
        columns=[
            column_spec(driver, column, generated=column is generated)
            for column in table.columns
        ],
        primary_key=[column.name for column in table.primary_key.columns],
        indexes=index_specs(table),
        foreign_keys=foreign_key_specs(table),
    )
    driver.table_options(table, spec)
    if table.comment:
        spec["comment"] = table.comment
    return spec


def type_ranges(existing: Iterable[str], names: Iterable[str]) -> dict[str, int]:
    """Assign each table name the first key of its range.

    Names already registered keep their position; new names are appended in
    the order given.
    """
    positions = list(existing)
    positions.extend(name for name in names if name not in positions)
    return {name: position << RANGE_BITS for position, name in enumerate(positions)}


def desired_schema(
    driver: Driver,
    tables: Sequence[Table],
    *,
    global_unique_id: bool = False,
    existing_types: Sequence[str] = (),
) -> SchemaSpec:
    """Compute the desired schema of the tables on the driver's dialect.

    Args:
        driver: Driver of the dev database the schema is resolved against
        tables: Tables in creation order
        global_unique_id: Add the type table and give every table its key range
        existing_types: Table names already registered in the type table

    Returns:
        The desired schema

    """
    specs = [table_spec(driver, table) for table in tables]

    if global_unique_id:
        if any(table.name == TYPE_TABLE for table in tables):
            msg = f"table name {TYPE_TABLE!r} is reserved for global unique IDs"
            raise MigrateError(msg)
        ranges = type_ranges(existing_types, (table.name for table in tables))
        for spec, table in zip(specs, tables, strict=True):
            if table.autoincrement_column is not None and ranges[table.name]:
                driver.set_auto_increment_start(spec, ranges[table.name])
        specs.insert(0, table_spec(driver, TYPES))

    schema = SchemaSpec(name=driver.schema_name(), tables=specs)
    if enums := driver.schema_enums(tables):
        schema["enums"] = enums
    return schema
