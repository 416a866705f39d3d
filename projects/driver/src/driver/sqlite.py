"""SQLite driver."""

from typing import ClassVar

from driver.base import Driver
from driver.url import Dialect


class SQLiteDriver(Driver):
    """SQLite has no schema-level defaults, so it offers no normalizer."""

    dialect: ClassVar[Dialect] = Dialect.SQLITE

    def schema_name(self) -> str:
        """Return the name SQLite gives the primary database."""
        return "main"
