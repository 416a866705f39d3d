"""Errors raised while extracting a schema document."""


class ExtractionError(Exception):
    """Base class for failures of the extraction pipeline."""


class SchemaLoadError(ExtractionError):
    """Raised when the models cannot be loaded from the schema path."""


class SchemaPlanError(ExtractionError):
    """Raised when the migration engine fails to plan the schema."""


class NoSchemaCapturedError(ExtractionError):
    """Raised when planning finished without reporting a desired schema."""


class NormalizeError(ExtractionError):
    """Raised when the driver fails to normalize the desired schema."""


class MarshalError(ExtractionError):
    """Raised when the driver fails to marshal the desired schema."""


class ClientOpenError(ExtractionError):
    """Raised when the driver connection to the dev database cannot be opened."""
