"""Bundled example datasets.

The registry is filled once, at import time, from the CSV files shipped
next to this module and is read-only afterwards.

- iris: Fisher's iris measurements (150 x 5)
- mtcars: Motor Trend road tests, 1974 (32 x 12, car name in ``model``)
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType

from tabula.errors import NotFoundError
from tabula.loader import load_delimited
from tabula.table import Table

logger = logging.getLogger(__name__)

__all__ = ["REGISTRY", "available_datasets", "load_bundled"]

_DATA_DIR = Path(__file__).parent


def _load_registry() -> MappingProxyType[str, Table]:
    tables = {path.stem: load_delimited(path) for path in sorted(_DATA_DIR.glob("*.csv"))}
    logger.debug("Registered bundled datasets: %s", ", ".join(tables))
    return MappingProxyType(tables)


REGISTRY = _load_registry()


def available_datasets() -> list[str]:
    """Return the names of the bundled datasets, sorted."""
    return sorted(REGISTRY)


def load_bundled(name: str) -> Table:
    """Return a bundled dataset by name.

    Tables are immutable, so the registered instance is returned as is.

    Args:
        name: Dataset name (e.g., "iris")

    Returns:
        The registered table

    Raises:
        NotFoundError: If no dataset has that name

    """
    try:
        return REGISTRY[name]
    except KeyError:
        raise NotFoundError(
            f"Unknown dataset {name!r} (available: {', '.join(available_datasets())})"
        ) from None
