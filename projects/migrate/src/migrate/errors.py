"""Errors raised by the migration engine."""


class MigrateError(Exception):
    """Raised when a migration cannot be planned or applied."""
