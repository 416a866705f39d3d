"""Default differ: additive changes between two schemas."""

from driver import SchemaSpec

from migrate.types import AddColumn, AddIndex, AddTable, Change


def diff(current: SchemaSpec, desired: SchemaSpec) -> list[Change]:
    """Compute the changes that bring the current schema up to the desired one.

    Only additions are planned: tables, columns and indexes present in the
    current schema but not in the desired one are left alone.
    """
    existing = {table["name"]: table for table in current["tables"]}
    changes: list[Change] = []

    for table in desired["tables"]:
        found = existing.get(table["name"])
        if found is None:
            changes.append(AddTable(table))
            continue

        columns = {column["name"] for column in found["columns"]}
        changes.extend(
            AddColumn(table["name"], column)
            for column in table["columns"]
            if column["name"] not in columns
        )

        indexes = {index["name"] for index in found["indexes"]}
        changes.extend(
            AddIndex(table["name"], index)
            for index in table["indexes"]
            if index["name"] not in indexes
        )

    return changes
