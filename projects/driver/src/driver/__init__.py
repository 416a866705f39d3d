"""Dev database drivers and the schema document format."""

from driver.base import Driver
from driver.deadline import Deadline
from driver.errors import (
    DeadlineExceededError,
    DriverError,
    InvalidURLError,
    OperationCancelledError,
    UnsupportedSchemeError,
)
from driver.main import DRIVERS, create_dev_engine, open_driver
from driver.types import (
    ColumnSpec,
    EnumSpec,
    ForeignKeySpec,
    IdentitySpec,
    IndexSpec,
    SchemaSpec,
    TableSpec,
)
from driver.url import ConnectionTarget, Dialect, parse_dev_url, sqlalchemy_url

__all__ = [
    "DRIVERS",
    "ColumnSpec",
    "ConnectionTarget",
    "Deadline",
    "DeadlineExceededError",
    "Dialect",
    "Driver",
    "DriverError",
    "EnumSpec",
    "ForeignKeySpec",
    "IdentitySpec",
    "IndexSpec",
    "InvalidURLError",
    "OperationCancelledError",
    "SchemaSpec",
    "TableSpec",
    "UnsupportedSchemeError",
    "create_dev_engine",
    "open_driver",
    "parse_dev_url",
    "sqlalchemy_url",
]
