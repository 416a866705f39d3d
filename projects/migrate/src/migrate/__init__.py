"""Migration planning module for SQLAViz."""

from migrate.desired import TYPE_TABLE, desired_schema
from migrate.differ import diff
from migrate.errors import MigrateError
from migrate.main import Migrator
from migrate.types import (
    AddColumn,
    AddIndex,
    AddTable,
    Change,
    DiffHook,
    Differ,
    DiffResult,
    PlanStatus,
    Skip,
)

__all__ = [
    "TYPE_TABLE",
    "AddColumn",
    "AddIndex",
    "AddTable",
    "Change",
    "DiffHook",
    "DiffResult",
    "Differ",
    "MigrateError",
    "Migrator",
    "PlanStatus",
    "Skip",
    "desired_schema",
    "diff",
]
