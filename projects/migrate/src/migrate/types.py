"""Type definitions for migration planning."""

from collections.abc import Callable, Sequence
from enum import StrEnum, auto
from typing import NamedTuple

from driver import ColumnSpec, IndexSpec, SchemaSpec, TableSpec


class AddTable(NamedTuple):
    """Create a table missing from the current schema."""

    table: TableSpec


class AddColumn(NamedTuple):
    """Add a column missing from an existing table."""

    table: str
    column: ColumnSpec


class AddIndex(NamedTuple):
    """Add an index missing from an existing table."""

    table: str
    index: IndexSpec


type Change = AddTable | AddColumn | AddIndex


class Skip(NamedTuple):
    """Diff outcome that stops planning without applying anything.

    Returned by differs that only want to observe the desired schema.
    """

    reason: str = ""


type DiffResult = Sequence[Change] | Skip

# A differ computes the changes turning the current schema into the desired one
type Differ = Callable[[SchemaSpec, SchemaSpec], DiffResult]

# A diff hook wraps the migrator's differ, e.g. to observe or replace it
type DiffHook = Callable[[Differ], Differ]


class PlanStatus(StrEnum):
    """Outcome of a planning run."""

    APPLIED = auto()
    UNCHANGED = auto()
    SKIPPED = auto()
