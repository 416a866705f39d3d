"""Loading SQLAlchemy tables from a models file or package."""

from __future__ import annotations

import sys
from importlib import import_module
from importlib.util import module_from_spec, spec_from_file_location
from logging import getLogger
from pkgutil import iter_modules
from typing import TYPE_CHECKING
from uuid import uuid4
from warnings import catch_warnings, filterwarnings

from sqlalchemy import MetaData, Table
from sqlalchemy.exc import SAWarning

from schema.errors import SchemaLoadError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from types import ModuleType

logger = getLogger(__name__)

MODULE_PREFIX = "sqlaviz_models_"


def _module_name(path: Path) -> str:
    """Name the models of one load, unique to that load."""
    return f"{MODULE_PREFIX}{path.stem}_{uuid4().hex}"


def _forget(name: str) -> None:
    """Drop the modules of a finished load from sys.modules."""
    for module in [key for key in list(sys.modules) if key.startswith(name)]:
        del sys.modules[module]


def _exec_module(name: str, location: Path, *, package: bool = False) -> ModuleType:
    """Run a source file as a new module registered under the given name."""
    spec = spec_from_file_location(
        name,
        location / "__init__.py" if package else location,
        submodule_search_locations=[str(location)] if package else None,
    )
    if spec is None or spec.loader is None:
        msg = f"cannot import {location}"
        raise SchemaLoadError(msg)
    module = module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def import_models(schema_path: Path, name: str) -> Iterator[ModuleType]:
    """Import the modules defining the models at a path.

    A file is imported on its own. A package directory is imported with all
    of its modules; a plain directory has each of its ``.py`` files
    imported as a separate module. Every module is registered under
    ``name`` or a name starting with it.
    """
    if schema_path.is_file():
        yield _exec_module(name, schema_path)
        return

    if (schema_path / "__init__.py").exists():
        yield _exec_module(name, schema_path, package=True)
        for module in sorted(iter_modules([str(schema_path)]), key=lambda m: m.name):
            yield import_module(f"{name}.{module.name}")
        return

    for path in sorted(schema_path.glob("*.py")):
        yield _exec_module(f"{name}_{path.stem}", path)


def collect_metadata(modules: Iterator[ModuleType]) -> list[MetaData]:
    """Find the MetaData objects reachable from module globals.

    MetaData instances, Table objects and declarative classes (anything
    carrying a ``metadata`` attribute) are all recognized.
    """
    found: dict[int, MetaData] = {}
    for module in modules:
        for value in vars(module).values():
            metadata: object
            if isinstance(value, MetaData):
                metadata = value
            elif isinstance(value, Table):
                metadata = value.metadata
            elif isinstance(value, type):
                metadata = getattr(value, "metadata", None)
            else:
                continue
            if isinstance(metadata, MetaData):
                found.setdefault(id(metadata), metadata)
    return list(found.values())


def load_tables(schema_path: Path) -> list[Table]:
    """Load the tables defined by the models at a path, in creation order.

    The models are run afresh on every call, so edits to them are picked up
    and concurrent calls never share module state.

    Raises:
        SchemaLoadError: The path is missing, its code fails to import, it
            defines no tables or it defines the same table twice

    """
    if not schema_path.exists():
        msg = f"schema path does not exist: {schema_path}"
        raise SchemaLoadError(msg)

    name = _module_name(schema_path)
    try:
        metadatas = collect_metadata(import_models(schema_path, name))
    except SchemaLoadError:
        raise
    except Exception as err:  # noqa: BLE001
        msg = f"importing models from {schema_path}: {err}"
        raise SchemaLoadError(msg) from err
    finally:
        _forget(name)

    tables: dict[str, Table] = {}
    for metadata in metadatas:
        with catch_warnings():
            filterwarnings("ignore", category=SAWarning)
            sorted_tables = metadata.sorted_tables
        for table in sorted_tables:
            if table.name in tables:
                msg = f"table {table.name!r} is defined more than once"
                raise SchemaLoadError(msg)
            tables[table.name] = table

    if not tables:
        msg = f"no tables found in {schema_path}"
        raise SchemaLoadError(msg)
    logger.debug("Loaded %d tables from %s", len(tables), schema_path)
    return list(tables.values())
