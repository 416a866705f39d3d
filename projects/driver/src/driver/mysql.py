"""MySQL driver."""

from typing import Any, ClassVar

from sqlalchemy import Enum, Table, text
from sqlalchemy.types import TypeEngine

from driver.base import Driver, with_length
from driver.errors import DriverError
from driver.hcl import quote
from driver.types import ColumnSpec, SchemaSpec, TableSpec
from driver.url import Dialect

# MySQL refuses VARCHAR without a length
DEFAULT_VARCHAR_LENGTH = 255


def _drop_inherited(spec: ColumnSpec | TableSpec, charset: str, collate: str) -> None:
    """Remove charset and collation settings equal to the inherited ones."""
    if spec.get("charset") == charset:
        del spec["charset"]
    if spec.get("collate") == collate:
        del spec["collate"]


class MySQLDriver(Driver):
    """MySQL driver resolving charset and collation defaults of the dev database."""

    dialect: ClassVar[Dialect] = Dialect.MYSQL
    type_names: ClassVar[dict[str, str]] = {"INTEGER": "int", "BOOL": "bool"}
    supports_normalize: ClassVar[bool] = True

    def schema_name(self) -> str:
        """Return the database selected by the dev URL."""
        name = self.connection.scalar(text("SELECT DATABASE()"))
        if not name:
            msg = "mysql dev url must select a database"
            raise DriverError(msg)
        return str(name)

    def length_default(self, sql_type: TypeEngine[Any]) -> TypeEngine[Any]:
        """Size length-less strings as VARCHAR(255)."""
        return with_length(sql_type, DEFAULT_VARCHAR_LENGTH)

    def enum_type(self, sql_type: Enum) -> str | None:
        """Render an inline ``enum("a","b")`` type."""
        return "enum(" + ",".join(quote(value) for value in sql_type.enums) + ")"

    def table_options(self, table: Table, spec: TableSpec) -> None:
        """Copy the mysql_charset and mysql_collate table arguments."""
        if charset := table.kwargs.get("mysql_charset"):
            spec["charset"] = str(charset)
        if collate := table.kwargs.get("mysql_collate"):
            spec["collate"] = str(collate)

    def set_auto_increment_start(self, table: TableSpec, start: int) -> None:
        """MySQL keeps the start as a table option."""
        table["auto_increment"] = start

    def auto_increment_start_sql(self, table: str, column: str, start: int) -> str:
        """Move the table's AUTO_INCREMENT counter."""
        quoted = self.connection.dialect.identifier_preparer.quote(table)
        return f"ALTER TABLE {quoted} AUTO_INCREMENT = {int(start)}"

    def normalize_schema(self, schema: SchemaSpec) -> SchemaSpec:
        """Apply the database's default charset and collation.

        Table settings equal to the schema's, and column settings equal to
        their table's, are implied by MySQL and dropped from the document.
        """
        row = self.connection.execute(
            text(
                "SELECT DEFAULT_CHARACTER_SET_NAME, DEFAULT_COLLATION_NAME "
                "FROM information_schema.SCHEMATA WHERE SCHEMA_NAME = :name",
            ),
            {"name": schema["name"]},
        ).one_or_none()
        if row is None:
            msg = f"schema {schema['name']!r} does not exist in the dev database"
            raise DriverError(msg)
        charset, collate = str(row[0]), str(row[1])

        tables: list[TableSpec] = []
        for table in schema["tables"]:
            normalized = table.copy()
            table_charset = table.get("charset", charset)
            table_collate = table.get("collate", collate)
            _drop_inherited(normalized, charset, collate)
            columns: list[ColumnSpec] = []
            for column in table["columns"]:
                normalized_column = column.copy()
                _drop_inherited(normalized_column, table_charset, table_collate)
                columns.append(normalized_column)
            normalized["columns"] = columns
            tables.append(normalized)

        normalized_schema = schema.copy()
        normalized_schema["charset"] = charset
        normalized_schema["collate"] = collate
        normalized_schema["tables"] = tables
        return normalized_schema
