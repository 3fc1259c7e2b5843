"""Data loaders.

Reads tables from delimited text files and named objects from
serialized-object containers. Each file is opened, fully consumed and
closed within the call; nothing partial is returned on failure.
"""

from __future__ import annotations

import csv
import logging
import re
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import pandas as pd

from tabula.config import config
from tabula.errors import DataIOError, DeserializationError, ParseError
from tabula.table import MISSING, ColumnType, Table, format_number, is_missing

logger = logging.getLogger(__name__)

__all__ = [
    "CONTAINER_FORMAT",
    "CONTAINER_VERSION",
    "load_delimited",
    "load_serialized",
    "read_serialized",
    "save_serialized",
    "write_delimited",
]

CONTAINER_FORMAT = "tabula-objects"
CONTAINER_VERSION = 1

_NUMBER = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)", re.IGNORECASE
)


def _parse_float(text: str) -> float | None:
    """Parse a numeric literal, or return None when the field is text.

    Accepts decimal and exponent notation with an optional sign, plus
    Inf, Infinity and NaN in any case. Surrounding whitespace and digit
    separators ("1_000") make the field text.
    """
    if not _NUMBER.fullmatch(text):
        return None
    return float(text)


def _build_column(raw: list[str | None]) -> tuple[list[Any], ColumnType]:
    """Apply the type inference rule to one column of raw fields.

    A column is NUMERIC when every non-missing field is a numeric literal,
    otherwise it stays CATEGORICAL text.
    """
    parsed: list[Any] = []
    for field in raw:
        if field is None:
            parsed.append(MISSING)
            continue
        number = _parse_float(field)
        if number is None:
            return list(raw), ColumnType.CATEGORICAL
        parsed.append(number)
    return parsed, ColumnType.NUMERIC


def load_delimited(
    path: str | Path,
    delimiter: str | None = None,
    missing_token: str | None = None,
    encoding: str | None = None,
) -> Table:
    """Load a delimited text file with a header row.

    Args:
        path: File to read
        delimiter: Field delimiter (default from config: ",")
        missing_token: Field text mapped to the missing marker (default: "")
        encoding: Text encoding (default: utf-8)

    Returns:
        Table with one column per header field, types inferred per column

    Raises:
        DataIOError: If the file does not exist or cannot be read
        ParseError: If the file is empty, a header field is blank or repeats
            a name, or a row's field count differs from the header's

    """
    if delimiter is None:
        delimiter = config.delimiter
    if missing_token is None:
        missing_token = config.missing_token
    if encoding is None:
        encoding = config.encoding

    path = Path(path)
    try:
        with path.open(newline="", encoding=encoding) as f:
            reader = csv.reader(f, delimiter=delimiter)
            try:
                header = next(reader)
            except StopIteration:
                raise ParseError(f"Empty file, no header row: {path}") from None

            header = [name.strip() for name in header]
            if not all(header):
                position = header.index("") + 1
                raise ParseError(f"{path}:1: header field {position} has no column name")
            if len(set(header)) != len(header):
                raise ParseError(f"Duplicate column names in header of {path}: {header}")

            raw_columns: list[list[str | None]] = [[] for _ in header]
            for fields in reader:
                if not fields or (len(fields) == 1 and not fields[0].strip() and len(header) > 1):
                    continue
                if len(fields) != len(header):
                    raise ParseError(
                        f"{path}:{reader.line_num}: expected {len(header)} fields, "
                        f"got {len(fields)}"
                    )
                for column, field in zip(raw_columns, fields):
                    column.append(None if field == missing_token else field)
    except ParseError:
        raise
    except (csv.Error, UnicodeDecodeError) as e:
        raise ParseError(f"Malformed delimited file {path}: {e}") from e
    except OSError as e:
        raise DataIOError(f"Cannot read {path}: {e}") from e

    pairs = []
    dtypes = {}
    for name, raw in zip(header, raw_columns):
        values, dtype = _build_column(raw)
        pairs.append((name, values))
        dtypes[name] = dtype

    table = Table(pairs, dtypes=dtypes)
    logger.debug("Loaded %d rows x %d columns from %s", table.n_rows, table.n_cols, path)
    return table


def write_delimited(
    table: Table,
    path: str | Path,
    delimiter: str | None = None,
    missing_token: str | None = None,
    encoding: str | None = None,
) -> None:
    """Write a table in the format read by load_delimited.

    Integral numbers are written without a decimal point and other numbers
    at full precision, so reading the file back reproduces the table.

    Args:
        table: Table to write
        path: Destination file
        delimiter: Field delimiter (default from config)
        missing_token: Text written for missing values (default from config)
        encoding: Text encoding (default from config)

    Raises:
        DataIOError: If the file cannot be written

    """
    if delimiter is None:
        delimiter = config.delimiter
    if missing_token is None:
        missing_token = config.missing_token
    if encoding is None:
        encoding = config.encoding

    names = table.column_names
    numeric = [table.dtype(name) is ColumnType.NUMERIC for name in names]
    columns = [table.column(name) for name in names]

    path = Path(path)
    try:
        with path.open("w", newline="", encoding=encoding) as f:
            writer = csv.writer(f, delimiter=delimiter, lineterminator="\n")
            writer.writerow(names)
            for i in range(table.n_rows):
                record = []
                for col, is_num in zip(columns, numeric):
                    value = col[i]
                    if is_missing(value):
                        record.append(missing_token)
                    elif is_num:
                        record.append(format_number(value))
                    else:
                        record.append(value)
                writer.writerow(record)
    except OSError as e:
        raise DataIOError(f"Cannot write {path}: {e}") from e

    logger.info("Wrote %d rows to %s", table.n_rows, path)


def save_serialized(path: str | Path, **objects: Any) -> list[str]:
    """Save named objects into a serialized-object container.

    Compression is inferred from the file suffix (.gz, .bz2, .xz, .zip).

    Args:
        path: Destination file
        **objects: Objects to store, keyed by the name they load back under

    Returns:
        Names written, in order

    Raises:
        DataIOError: If the file cannot be written

    """
    payload = {"format": CONTAINER_FORMAT, "version": CONTAINER_VERSION, "objects": objects}
    try:
        pd.to_pickle(payload, Path(path))
    except OSError as e:
        raise DataIOError(f"Cannot write {path}: {e}") from e
    logger.info("Saved %d objects to %s: %s", len(objects), path, ", ".join(objects))
    return list(objects)


def read_serialized(path: str | Path) -> dict[str, Any]:
    """Read every named object from a serialized-object container.

    Args:
        path: Container file

    Returns:
        Mapping of object name to object

    Raises:
        DataIOError: If the file does not exist or cannot be read
        DeserializationError: If the payload is corrupt or not a container
            of a supported version

    """
    path = Path(path)
    if not path.is_file():
        raise DataIOError(f"Serialized file not found: {path}")

    try:
        payload = pd.read_pickle(path)
    except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
        raise DataIOError(f"Cannot read {path}: {e}") from e
    except Exception as e:
        # Includes decompression errors such as gzip.BadGzipFile (an OSError)
        raise DeserializationError(f"Corrupt serialized file {path}: {e}") from e

    if not isinstance(payload, dict) or payload.get("format") != CONTAINER_FORMAT:
        raise DeserializationError(f"{path} is not a {CONTAINER_FORMAT} container")
    version = payload.get("version")
    if version != CONTAINER_VERSION:
        raise DeserializationError(
            f"Unsupported container version {version!r} in {path} "
            f"(expected {CONTAINER_VERSION})"
        )
    objects = payload.get("objects")
    if not isinstance(objects, dict) or not all(isinstance(k, str) for k in objects):
        raise DeserializationError(f"Malformed object table in {path}")
    return dict(objects)


def load_serialized(
    path: str | Path, namespace: MutableMapping[str, Any] | None = None
) -> list[str]:
    """Load named objects from a container into a namespace.

    Args:
        path: Container file
        namespace: Mapping to bind each object in, e.g. ``globals()``;
            when None the objects are only read and their names reported

    Returns:
        Names of the objects loaded

    Raises:
        DataIOError: If the file does not exist or cannot be read
        DeserializationError: If the payload is corrupt or incompatible

    """
    objects = read_serialized(path)
    if namespace is not None:
        namespace.update(objects)
    names = list(objects)
    logger.debug("Loaded %d objects from %s: %s", len(names), path, ", ".join(names))
    return names
