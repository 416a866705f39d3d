"""Engines and drivers for dev databases."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from logging import getLogger
from math import ceil
from typing import TYPE_CHECKING, Any

from sqlalchemy import Engine, create_engine, event

from driver.mysql import MySQLDriver
from driver.postgres import PostgresDriver
from driver.sqlite import SQLiteDriver
from driver.url import Dialect, driver_flags, parse_dev_url, sqlalchemy_url

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from driver.base import Driver
    from driver.deadline import Deadline

logger = getLogger(__name__)

DRIVERS: dict[Dialect, type[Driver]] = {
    Dialect.SQLITE: SQLiteDriver,
    Dialect.MYSQL: MySQLDriver,
    Dialect.POSTGRES: PostgresDriver,
}

TRUE_FLAGS = {"1", "true", "yes", "on"}


def enable_foreign_keys(dbapi_connection: SQLiteConnection, _record: Any) -> None:  # noqa: ANN401
    """Turn on SQLite foreign key enforcement for a new connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_dev_engine(dev_url: str, deadline: Deadline | None = None) -> Engine:
    """Create an engine for a dev database URL.

    Args:
        dev_url: Dev database URL, e.g. ``sqlite3://file?mode=memory&_fk=1``
        deadline: Bounds the time spent establishing connections

    Returns:
        Engine the caller owns and must dispose

    """
    target = parse_dev_url(dev_url)
    url = sqlalchemy_url(dev_url)
    connect_args: dict[str, Any] = {}
    if deadline is not None and (remaining := deadline.remaining()) is not None:
        if target.dialect is Dialect.SQLITE:
            connect_args["timeout"] = remaining
        else:
            connect_args["connect_timeout"] = max(1, ceil(remaining))

    engine = create_engine(url, connect_args=connect_args)
    if driver_flags(dev_url).get("_fk", "").lower() in TRUE_FLAGS:
        event.listen(engine, "connect", enable_foreign_keys)
    logger.debug("Created %s engine for %s", target.dialect, url.render_as_string())
    return engine


@contextmanager
def open_driver(dev_url: str, deadline: Deadline | None = None) -> Iterator[Driver]:
    """Open a driver on a dev database, releasing its connection on exit."""
    target = parse_dev_url(dev_url)
    engine = create_dev_engine(dev_url, deadline)
    try:
        with engine.connect() as connection:
            yield DRIVERS[target.dialect](connection)
    finally:
        engine.dispose()
