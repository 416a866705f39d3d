"""Dialect driver interface: inspect, normalize and marshal schemas."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from copy import copy
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import Enum, String, Text, inspect
from sqlalchemy.exc import CompileError

from driver.hcl import Block, Raw, Value, dumps, quote
from driver.types import (
    ColumnSpec,
    EnumSpec,
    ForeignKeySpec,
    IdentitySpec,
    IndexSpec,
    SchemaSpec,
    TableSpec,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Connection, Inspector, Table
    from sqlalchemy.types import TypeEngine

    from driver.url import Dialect

logger = getLogger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def reference(*path: str) -> Raw:
    """Build a reference such as ``table.users.column.id``."""
    parts: list[str] = []
    for kind, name in zip(path[::2], path[1::2], strict=True):
        if IDENTIFIER.match(name):
            parts.append(f"{kind}.{name}")
        else:
            parts.append(f"{kind}[{quote(name)}]")
    return Raw(".".join(parts))


def constraint_name(table: str, columns: list[str], suffix: str) -> str:
    """Name an unnamed constraint after its table and columns."""
    return "_".join([table, *columns, suffix])


def default_value(sql_text: str) -> Value:
    """Convert the SQL text of a server default into an HCL value."""
    if NUMBER.match(sql_text):
        return Raw(sql_text)
    if len(sql_text) >= 2 and sql_text[0] == sql_text[-1] == "'":
        return sql_text[1:-1].replace("''", "'")
    if sql_text.lower() in ("true", "false"):
        return Raw(sql_text.lower())
    return Raw(f"sql({quote_sql(sql_text)})")


def quote_sql(sql_text: str) -> str:
    """Quote SQL text for embedding in an ``sql(...)`` call."""
    return '"' + sql_text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Driver(ABC):
    """Dialect driver bound to an open dev database connection."""

    dialect: ClassVar[Dialect]
    # Maps the head of a compiled SQLAlchemy type to its schema document name
    type_names: ClassVar[dict[str, str]] = {}
    supports_normalize: ClassVar[bool] = False

    def __init__(self, connection: Connection) -> None:
        """Bind the driver to a connection owned by the caller."""
        self.connection = connection

    @abstractmethod
    def schema_name(self) -> str:
        """Return the name of the schema the connection works in."""

    def normalize_schema(self, schema: SchemaSpec) -> SchemaSpec:
        """Resolve dialect defaults the dev database applies to a schema."""
        msg = f"{self.dialect} driver does not support schema normalization"
        raise NotImplementedError(msg)

    # Type mapping

    def column_type(self, sql_type: TypeEngine[Any]) -> str:
        """Render a SQLAlchemy type as a schema document type expression."""
        if getattr(sql_type, "collation", None):
            sql_type = copy(sql_type)
            sql_type.collation = None  # pyright: ignore[reportAttributeAccessIssue]
        compiled = sql_type.compile(dialect=self.connection.dialect)
        return self.type_expression(compiled)

    def type_expression(self, compiled: str) -> str:
        """Normalize compiled DDL type text, e.g. ``NUMERIC(10, 2)``."""
        head, paren, args = compiled.partition("(")
        head = head.strip().upper()
        name = self.type_names.get(head, head.lower().replace(" ", "_"))
        if not paren:
            return name
        return f"{name}({args.replace(' ', '')}"

    def enum_type(self, sql_type: Enum) -> str | None:
        """Return a dialect-specific enum expression, or None to compile it."""
        return None

    def resolve_type(self, sql_type: TypeEngine[Any]) -> str:
        """Resolve the type expression of a column in the desired schema."""
        if isinstance(sql_type, Enum) and (expression := self.enum_type(sql_type)):
            return expression
        return self.column_type(self.length_default(sql_type))

    def length_default(self, sql_type: TypeEngine[Any]) -> TypeEngine[Any]:
        """Give length-less strings the length the dialect requires, if any."""
        return sql_type

    def schema_enums(self, tables: Sequence[Table]) -> list[EnumSpec]:
        """Collect schema-level enum types used by the tables."""
        return []

    def table_options(self, table: Table, spec: TableSpec) -> None:
        """Copy dialect-specific table options onto a table spec."""

    # Auto increment

    def mark_auto_increment(
        self,
        column: ColumnSpec,
        *,
        always: bool = False,
    ) -> None:
        """Flag a column as generating its own values."""
        column["auto_increment"] = True

    def set_auto_increment_start(self, table: TableSpec, start: int) -> None:
        """Record where a table's generated keys start."""

    def auto_increment_start_sql(
        self,
        table: str,
        column: str,
        start: int,
    ) -> str | None:
        """SQL moving a table's key generator to ``start``, if supported."""
        return None

    # Inspection

    def _inspect_type(self, sql_type: TypeEngine[Any]) -> str:
        try:
            return self.column_type(sql_type)
        except CompileError:
            return str(sql_type).lower()

    def _inspect_table(self, inspector: Inspector, name: str) -> TableSpec:
        columns: list[ColumnSpec] = []
        for reflected in inspector.get_columns(name):
            column = ColumnSpec(
                name=reflected["name"],
                type=self._inspect_type(reflected["type"]),
                null=bool(reflected["nullable"]),
            )
            if reflected.get("autoincrement") is True:
                column["auto_increment"] = True
            if (default := reflected.get("default")) is not None:
                column["default"] = str(default)
            columns.append(column)

        indexes: list[IndexSpec] = []
        for index in inspector.get_indexes(name):
            index_columns = [c for c in index["column_names"] if c is not None]
            indexes.append(
                IndexSpec(
                    name=index["name"] or constraint_name(name, index_columns, "idx"),
                    columns=index_columns,
                    unique=bool(index["unique"]),
                ),
            )
        # Some dialects report unique constraints as indexes too
        seen = {index["name"] for index in indexes}
        for unique in inspector.get_unique_constraints(name):
            unique_name = unique["name"] or constraint_name(
                name,
                unique["column_names"],
                "key",
            )
            if unique_name not in seen:
                indexes.append(
                    IndexSpec(
                        name=unique_name,
                        columns=unique["column_names"],
                        unique=True,
                    ),
                )

        foreign_keys = [
            ForeignKeySpec(
                name=fk["name"]
                or constraint_name(name, fk["constrained_columns"], "fkey"),
                columns=fk["constrained_columns"],
                ref_table=fk["referred_table"],
                ref_columns=fk["referred_columns"],
            )
            for fk in inspector.get_foreign_keys(name)
        ]

        return TableSpec(
            name=name,
            columns=columns,
            primary_key=inspector.get_pk_constraint(name)["constrained_columns"],
            indexes=indexes,
            foreign_keys=foreign_keys,
        )

    def inspect_schema(self) -> SchemaSpec:
        """Inspect the current state of the schema the connection works in."""
        inspector = inspect(self.connection)
        name = self.schema_name()
        tables = [
            self._inspect_table(inspector, table)
            for table in sorted(inspector.get_table_names())
        ]
        logger.debug("Inspected schema %s with %d tables", name, len(tables))
        return SchemaSpec(name=name, tables=tables)

    # Marshaling

    def _column_block(self, parent: Block, column: ColumnSpec) -> None:
        block = parent.block("column", column["name"])
        block.attr("null", column["null"])
        block.attr("type", Raw(column["type"]))
        if "default" in column:
            block.attr("default", default_value(column["default"]))
        if column.get("auto_increment"):
            block.attr("auto_increment", True)
        for key in ("charset", "collate", "comment"):
            if key in column:
                block.attr(key, column[key])
        if identity := column.get("identity"):
            self._identity_block(block, identity)

    def _identity_block(self, parent: Block, identity: IdentitySpec) -> None:
        block = parent.block("identity")
        block.attr("generated", Raw(identity["generated"]))
        if "start" in identity:
            block.attr("start", identity["start"])

    def _table_block(self, schema: SchemaSpec, table: TableSpec) -> Block:
        block = Block("table", [table["name"]])
        block.attr("schema", reference("schema", schema["name"]))
        for key in ("charset", "collate", "comment"):
            if key in table:
                block.attr(key, table[key])
        if "auto_increment" in table:
            block.attr("auto_increment", table["auto_increment"])

        for column in table["columns"]:
            self._column_block(block, column)

        if table["primary_key"]:
            block.block("primary_key").attr(
                "columns",
                [reference("column", name) for name in table["primary_key"]],
            )

        for fk in table["foreign_keys"]:
            fk_block = block.block("foreign_key", fk["name"])
            fk_block.attr("columns", [reference("column", c) for c in fk["columns"]])
            fk_block.attr(
                "ref_columns",
                [
                    reference("table", fk["ref_table"], "column", c)
                    for c in fk["ref_columns"]
                ],
            )
            for key in ("on_update", "on_delete"):
                if key in fk:
                    fk_block.attr(key, Raw(fk[key]))

        for index in table["indexes"]:
            index_block = block.block("index", index["name"])
            if index["unique"]:
                index_block.attr("unique", True)
            index_block.attr(
                "columns",
                [reference("column", c) for c in index["columns"]],
            )

        return block

    def spec_blocks(self, schema: SchemaSpec) -> list[Block]:
        """Build the document blocks for a schema: tables, enums, schema."""
        blocks = [self._table_block(schema, table) for table in schema["tables"]]
        for enum in schema.get("enums", []):
            enum_block = Block("enum", [enum["name"]])
            enum_block.attr("schema", reference("schema", schema["name"]))
            enum_block.attr("values", enum["values"])
            blocks.append(enum_block)
        schema_block = Block("schema", [schema["name"]])
        for key in ("charset", "collate"):
            if key in schema:
                schema_block.attr(key, schema[key])
        blocks.append(schema_block)
        return blocks

    def marshal_spec(self, schema: SchemaSpec) -> bytes:
        """Marshal a schema into its textual document."""
        return dumps(self.spec_blocks(schema)).encode()


def with_length(sql_type: TypeEngine[Any], length: int) -> TypeEngine[Any]:
    """Copy a length-less string type with a length set."""
    if (
        isinstance(sql_type, String)
        and not isinstance(sql_type, (Enum, Text))
        and sql_type.length is None
    ):
        sized = copy(sql_type)
        sized.length = length
        return sized
    return sql_type
