"""TypedDict schemas for the dialect-resolved schema representation."""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict


class IdentitySpec(TypedDict):
    """Identity generation of a column (PostgreSQL)."""

    generated: Literal["ALWAYS", "BY_DEFAULT"]
    start: NotRequired[int]


class ColumnSpec(TypedDict):
    """Schema for a table column."""

    name: str
    type: str  # Dialect type expression, e.g. "varchar(255)"
    null: bool
    default: NotRequired[str]  # SQL text of the server default
    auto_increment: NotRequired[bool]
    identity: NotRequired[IdentitySpec]
    charset: NotRequired[str]
    collate: NotRequired[str]
    comment: NotRequired[str]


class IndexSpec(TypedDict):
    """Schema for an index or unique constraint."""

    name: str
    columns: list[str]
    unique: bool


class ForeignKeySpec(TypedDict):
    """Schema for a foreign key constraint."""

    name: str
    columns: list[str]
    ref_table: str
    ref_columns: list[str]
    on_update: NotRequired[str]
    on_delete: NotRequired[str]


class TableSpec(TypedDict):
    """Schema for a table."""

    name: str
    columns: list[ColumnSpec]
    primary_key: list[str]
    indexes: list[IndexSpec]
    foreign_keys: list[ForeignKeySpec]
    charset: NotRequired[str]
    collate: NotRequired[str]
    comment: NotRequired[str]
    auto_increment: NotRequired[int]  # Start value (MySQL)


class EnumSpec(TypedDict):
    """Schema for a named enum type (PostgreSQL)."""

    name: str
    values: list[str]


class SchemaSpec(TypedDict):
    """Root schema: one named database schema and its tables."""

    name: str
    tables: list[TableSpec]
    enums: NotRequired[list[EnumSpec]]
    charset: NotRequired[str]
    collate: NotRequired[str]
