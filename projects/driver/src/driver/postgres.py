"""PostgreSQL driver."""

from collections.abc import Sequence
from typing import ClassVar

from sqlalchemy import Enum, Table, text

from driver.base import Driver, reference
from driver.errors import DriverError
from driver.types import ColumnSpec, EnumSpec, SchemaSpec, TableSpec
from driver.url import Dialect


class PostgresDriver(Driver):
    """PostgreSQL driver with identity columns and named enum types."""

    dialect: ClassVar[Dialect] = Dialect.POSTGRES
    type_names: ClassVar[dict[str, str]] = {
        "VARCHAR": "character_varying",
        "CHAR": "character",
        "TIMESTAMP WITHOUT TIME ZONE": "timestamp",
        "TIMESTAMP WITH TIME ZONE": "timestamptz",
        "TIME WITHOUT TIME ZONE": "time",
        "TIME WITH TIME ZONE": "timetz",
    }
    supports_normalize: ClassVar[bool] = True

    def schema_name(self) -> str:
        """Return the first schema on the search path."""
        name = self.connection.scalar(text("SELECT current_schema()"))
        if not name:
            msg = "postgres dev database has no current schema"
            raise DriverError(msg)
        return str(name)

    def enum_type(self, sql_type: Enum) -> str | None:
        """Reference the named enum type, unless it is not native."""
        if not sql_type.native_enum or not sql_type.name:
            return None
        return str(reference("enum", sql_type.name))

    def schema_enums(self, tables: Sequence[Table]) -> list[EnumSpec]:
        """Collect the named enum types used by the tables."""
        enums: dict[str, EnumSpec] = {}
        for table in tables:
            for column in table.columns:
                sql_type = column.type
                if isinstance(sql_type, Enum) and sql_type.native_enum and sql_type.name:
                    enums.setdefault(
                        sql_type.name,
                        EnumSpec(name=sql_type.name, values=list(sql_type.enums)),
                    )
        return list(enums.values())

    def mark_auto_increment(
        self,
        column: ColumnSpec,
        *,
        always: bool = False,
    ) -> None:
        """Generate values through an identity column."""
        column["identity"] = {"generated": "ALWAYS" if always else "BY_DEFAULT"}

    def set_auto_increment_start(self, table: TableSpec, start: int) -> None:
        """Start the identity sequence of the table's generated column."""
        for column in table["columns"]:
            if identity := column.get("identity"):
                identity["start"] = start

    def auto_increment_start_sql(self, table: str, column: str, start: int) -> str:
        """Move the sequence behind a serial or identity column."""
        quoted = self.connection.dialect.identifier_preparer.quote(table)
        literal = quoted.replace("'", "''")
        column_literal = column.replace("'", "''")
        return (
            f"SELECT setval(pg_get_serial_sequence('{literal}', '{column_literal}'), "
            f"{int(start)}, false)"
        )

    def normalize_schema(self, schema: SchemaSpec) -> SchemaSpec:
        """Drop column collations equal to the database default collation."""
        collate = self.connection.scalar(
            text(
                "SELECT datcollate FROM pg_database "
                "WHERE datname = current_database()",
            ),
        )
        tables: list[TableSpec] = []
        for table in schema["tables"]:
            normalized = table.copy()
            columns: list[ColumnSpec] = []
            for column in table["columns"]:
                normalized_column = column.copy()
                if collate and normalized_column.get("collate") == collate:
                    del normalized_column["collate"]
                columns.append(normalized_column)
            normalized["columns"] = columns
            tables.append(normalized)
        normalized_schema = schema.copy()
        normalized_schema["tables"] = tables
        return normalized_schema
