"""Schema document extraction from SQLAlchemy models."""

from schema.errors import (
    ClientOpenError,
    ExtractionError,
    MarshalError,
    NoSchemaCapturedError,
    NormalizeError,
    SchemaLoadError,
    SchemaPlanError,
)
from schema.loader import load_tables
from schema.main import HCLOptions, SchemaCapture, capture_desired_schema, generate_hcl

__all__ = [
    "ClientOpenError",
    "ExtractionError",
    "HCLOptions",
    "MarshalError",
    "NoSchemaCapturedError",
    "NormalizeError",
    "SchemaCapture",
    "SchemaLoadError",
    "SchemaPlanError",
    "capture_desired_schema",
    "generate_hcl",
    "load_tables",
]
