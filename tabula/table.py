"""Column-oriented table model.

A Table is an ordered set of uniquely named, equal-length columns. Each
column is NUMERIC (float64, NaN marks a missing value) or CATEGORICAL
(object array of str, None marks a missing value). Column arrays are
read-only, so every transform produces a new Table.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from tabula.config import config
from tabula.errors import ColumnNotFoundError, TableShapeError

logger = logging.getLogger(__name__)

__all__ = [
    "MISSING",
    "ColumnType",
    "Row",
    "Table",
    "format_number",
    "infer_type",
    "is_missing",
    "make_column",
    "value_sort_key",
]

# Missing marker. Numeric columns store it as NaN.
MISSING = None


class ColumnType(str, Enum):
    """Storage type of a column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"

    @property
    def abbrev(self) -> str:
        """Short type tag shown when a table is printed."""
        return "<dbl>" if self is ColumnType.NUMERIC else "<chr>"


def is_missing(value: Any) -> bool:
    """Return True for the missing marker and for float NaN."""
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (bool, int, float, np.number, np.bool_))


def infer_type(values: Iterable[Any]) -> ColumnType:
    """Infer the column type of a sequence of Python values.

    A column is NUMERIC when every non-missing value is a number (an
    all-missing column counts as NUMERIC), otherwise CATEGORICAL.

    Args:
        values: Column values

    Returns:
        Inferred column type

    """
    for value in values:
        if is_missing(value):
            continue
        if not _is_number(value):
            return ColumnType.CATEGORICAL
    return ColumnType.NUMERIC


def make_column(values: Iterable[Any], dtype: ColumnType | None = None) -> np.ndarray:
    """Build a read-only column array.

    Args:
        values: Column values (any iterable, including numpy arrays)
        dtype: Target type; inferred from the values when None

    Returns:
        float64 array for NUMERIC, object array of str/None for CATEGORICAL

    Raises:
        TableShapeError: If values cannot be stored as a NUMERIC column

    """
    if isinstance(values, np.ndarray) and values.dtype.kind in "biuf":
        items: Sequence[Any] = values
        if dtype is None:
            dtype = ColumnType.NUMERIC
    else:
        items = list(values)
        if dtype is None:
            dtype = infer_type(items)

    if dtype is ColumnType.NUMERIC:
        if isinstance(items, np.ndarray):
            array = items.astype(np.float64, copy=True)
        else:
            try:
                array = np.array(
                    [np.nan if is_missing(v) else float(v) for v in items], dtype=np.float64
                )
            except (TypeError, ValueError) as e:
                raise TableShapeError(f"Values are not numeric: {e}") from e
    else:
        array = np.empty(len(items), dtype=object)
        for i, v in enumerate(items):
            if is_missing(v):
                array[i] = MISSING
            elif isinstance(v, str):
                array[i] = v
            elif _is_number(v):
                array[i] = format_number(v)
            else:
                array[i] = str(v)

    array.flags.writeable = False
    return array


def format_number(value: Any) -> str:
    """Format a number as text without losing precision.

    Integral values print without a decimal point; other values use the
    shortest repr that round-trips through float().
    """
    number = float(value)
    if math.isfinite(number) and number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    return repr(number)


def value_sort_key(value: Any) -> tuple[int, Any]:
    """Sort key ordering numbers, then text, then missing values."""
    if is_missing(value):
        return (2, 0)
    if _is_number(value):
        return (0, float(value))
    return (1, str(value))


class Row(Mapping[str, Any]):
    """Read-only view of one table row, indexed by column name.

    Numeric values are returned as numpy.float64 so that arithmetic on
    them follows IEEE semantics (x / 0 gives inf, 0 / 0 gives nan).
    """

    def __init__(self, table: Table, index: int) -> None:
        """Bind the view to a row of a table.

        Args:
            table: Source table
            index: Row position

        """
        self._table = table
        self._index = index

    @property
    def index(self) -> int:
        """Position of the row in its table."""
        return self._index

    def __getitem__(self, name: str) -> Any:
        """Return the value of column ``name`` in this row."""
        return self._table.column(name)[self._index]

    def __contains__(self, name: object) -> bool:
        """Return True if the row's table has a column called ``name``."""
        return name in self._table

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of column ``name``, or ``default`` if there is none."""
        return self[name] if name in self._table else default

    def __iter__(self) -> Iterator[str]:
        """Iterate over column names."""
        return iter(self._table.column_names)

    def __len__(self) -> int:
        """Return the number of columns."""
        return self._table.n_cols

    def __repr__(self) -> str:
        """Return a debugging representation."""
        values = ", ".join(f"{k}={self[k]!r}" for k in self)
        return f"Row({self._index}: {values})"


class Table:
    """Immutable column-oriented table.

    Example:
        >>> t = Table({"species": ["A", "B"], "mass": [1.5, None]})
        >>> t.shape
        (2, 2)
        >>> t.dtype("mass")
        <ColumnType.NUMERIC: 'numeric'>

    """

    def __init__(
        self,
        columns: Mapping[str, Iterable[Any]] | Iterable[tuple[str, Iterable[Any]]] | None = None,
        dtypes: Mapping[str, ColumnType] | None = None,
    ) -> None:
        """Create a table from named columns.

        Args:
            columns: Mapping or sequence of (name, values) pairs, in column order
            dtypes: Optional explicit type per column; inferred otherwise

        Raises:
            TableShapeError: On duplicate names or unequal column lengths

        """
        pairs = columns.items() if isinstance(columns, Mapping) else (columns or [])
        dtypes = dtypes or {}
        self._columns: dict[str, np.ndarray] = {}
        self._dtypes: dict[str, ColumnType] = {}
        n_rows: int | None = None

        for name, values in pairs:
            if not isinstance(name, str) or not name:
                raise TableShapeError(f"Column names must be non-empty strings, got {name!r}")
            if name in self._columns:
                raise TableShapeError(f"Duplicate column name: {name!r}")
            if isinstance(values, np.ndarray) and name in dtypes and not values.flags.writeable:
                # Already a stored column of the right type
                array = values
            else:
                array = make_column(values, dtypes.get(name))
            if n_rows is None:
                n_rows = len(array)
            elif len(array) != n_rows:
                raise TableShapeError(
                    f"Column {name!r} has {len(array)} values, expected {n_rows}"
                )
            self._columns[name] = array
            self._dtypes[name] = (
                ColumnType.NUMERIC if array.dtype == np.float64 else ColumnType.CATEGORICAL
            )

        self._n_rows = n_rows or 0

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_records(
        cls, records: Iterable[Mapping[str, Any]], columns: Sequence[str] | None = None
    ) -> Table:
        """Build a table from row dictionaries.

        Args:
            records: One mapping per row
            columns: Column order; defaults to first-seen key order

        Returns:
            New table (keys absent from a record become missing)

        """
        records = list(records)
        if columns is None:
            seen: dict[str, None] = {}
            for record in records:
                for key in record:
                    seen.setdefault(key, None)
            columns = list(seen)
        return cls([(name, [r.get(name, MISSING) for r in records]) for name in columns])

    @classmethod
    def from_pandas(cls, df: pd.DataFrame) -> Table:
        """Convert a pandas DataFrame (the index is dropped)."""
        pairs = []
        for name in df.columns:
            series = df[name]
            if pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series):
                pairs.append((str(name), series.to_numpy(dtype=np.float64, na_value=np.nan)))
            else:
                pairs.append((str(name), [None if pd.isna(v) else v for v in series.tolist()]))
        return cls(pairs)

    def to_pandas(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame."""
        return pd.DataFrame(
            {name: np.array(col, copy=True) for name, col in self._columns.items()},
            columns=self.column_names,
        )

    # ------------------------------------------------------------------
    # Shape and access
    # ------------------------------------------------------------------

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return self._n_rows

    @property
    def n_cols(self) -> int:
        """Number of columns."""
        return len(self._columns)

    @property
    def shape(self) -> tuple[int, int]:
        """(rows, columns)."""
        return self._n_rows, len(self._columns)

    @property
    def column_names(self) -> list[str]:
        """Column names in order."""
        return list(self._columns)

    @property
    def dtypes(self) -> dict[str, ColumnType]:
        """Column types by name."""
        return dict(self._dtypes)

    def __len__(self) -> int:
        """Return the number of rows."""
        return self._n_rows

    def __contains__(self, name: object) -> bool:
        """Return True if the table has a column called ``name``."""
        return name in self._columns

    def require(self, *names: str) -> None:
        """Raise ColumnNotFoundError unless every name is a column."""
        for name in names:
            if name not in self._columns:
                raise ColumnNotFoundError(name, self.column_names)

    def column(self, name: str) -> np.ndarray:
        """Return the read-only array backing column ``name``."""
        try:
            return self._columns[name]
        except KeyError:
            raise ColumnNotFoundError(name, self.column_names) from None

    def dtype(self, name: str) -> ColumnType:
        """Return the type of column ``name``."""
        self.require(name)
        return self._dtypes[name]

    def to_list(self, name: str) -> list[Any]:
        """Return column values as Python objects, with None for missing."""
        if self.dtype(name) is ColumnType.NUMERIC:
            return [None if np.isnan(v) else float(v) for v in self._columns[name]]
        return list(self._columns[name])

    def row(self, index: int) -> Row:
        """Return a view of row ``index``."""
        if not -self._n_rows <= index < self._n_rows:
            raise IndexError(f"Row index {index} out of range for {self._n_rows} rows")
        return Row(self, index % self._n_rows)

    def rows(self) -> Iterator[Row]:
        """Iterate over row views."""
        for i in range(self._n_rows):
            yield Row(self, i)

    def to_records(self) -> list[dict[str, Any]]:
        """Return rows as dictionaries with None for missing values."""
        lists = {name: self.to_list(name) for name in self._columns}
        return [{name: lists[name][i] for name in lists} for i in range(self._n_rows)]

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def take(self, indices: Sequence[int] | np.ndarray) -> Table:
        """Return a table holding the rows at ``indices``, in that order."""
        index_array = np.asarray(indices, dtype=np.intp)
        return Table(
            [(name, col[index_array]) for name, col in self._columns.items()],
            dtypes=self._dtypes,
        )

    def head(self, n: int = 6) -> Table:
        """Return the first ``n`` rows."""
        return self.take(np.arange(min(max(n, 0), self._n_rows)))

    def tail(self, n: int = 6) -> Table:
        """Return the last ``n`` rows."""
        n = min(max(n, 0), self._n_rows)
        return self.take(np.arange(self._n_rows - n, self._n_rows))

    def with_column(
        self, name: str, values: Iterable[Any], dtype: ColumnType | None = None
    ) -> Table:
        """Return a table with column ``name`` added, or replaced in place."""
        pairs: list[tuple[str, Iterable[Any]]] = list(self._columns.items())
        types: dict[str, ColumnType] = dict(self._dtypes)
        types.pop(name, None)
        if dtype is not None:
            types[name] = dtype
        new_pairs = [(n, values if n == name else col) for n, col in pairs]
        if name not in self._columns:
            new_pairs.append((name, values))
        return Table(new_pairs, dtypes=types)

    def pipe(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Apply ``func(self, *args, **kwargs)``, for left-to-right chaining.

        Example:
            >>> from tabula.transform import group_by, summarize
            >>> from tabula.aggregate import count
            >>> t.pipe(group_by, ["species"]).pipe(summarize, {"n": count()})

        """
        return func(self, *args, **kwargs)

    # ------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        """Compare names, types and values (missing equals missing)."""
        if not isinstance(other, Table):
            return NotImplemented
        if self.column_names != other.column_names or self._dtypes != other._dtypes:
            return False
        if self._n_rows != other._n_rows:
            return False
        for name, col in self._columns.items():
            other_col = other._columns[name]
            if self._dtypes[name] is ColumnType.NUMERIC:
                if not np.array_equal(col, other_col, equal_nan=True):
                    return False
            elif list(col) != list(other_col):
                return False
        return True

    __hash__ = None  # type: ignore[assignment]

    def to_string(self, max_rows: int | None = None) -> str:
        """Render the table as aligned text.

        Args:
            max_rows: Rows to show (default from config)

        Returns:
            Multi-line string with a size header, a type row and a footer
            counting the rows not shown

        """
        if max_rows is None:
            max_rows = config.print_max_rows
        shown = min(self._n_rows, max_rows)

        lines = [f"# A table: {self._n_rows} x {self.n_cols}"]
        index_cells = ["", ""] + [str(i + 1) for i in range(shown)]
        blocks = [index_cells]
        right_aligned = [True]
        for name, col in self._columns.items():
            dtype = self._dtypes[name]
            cells = [name, dtype.abbrev] + [_format_cell(col[i], dtype) for i in range(shown)]
            blocks.append(cells)
            right_aligned.append(dtype is ColumnType.NUMERIC)

        widths = [max(len(c) for c in block) for block in blocks]
        for line_no in range(len(index_cells)):
            parts = []
            for block, width, right in zip(blocks, widths, right_aligned):
                cell = block[line_no]
                parts.append(cell.rjust(width) if right else cell.ljust(width))
            lines.append(" ".join(parts).rstrip())

        if self._n_rows > shown:
            lines.append(f"# ... with {self._n_rows - shown} more rows")
        return "\n".join(lines)

    def __str__(self) -> str:
        """Return the printed form of the table."""
        return self.to_string()

    def __repr__(self) -> str:
        """Return a short description."""
        return f"Table({self._n_rows} x {self.n_cols}: {', '.join(self.column_names)})"


def _format_cell(value: Any, dtype: ColumnType) -> str:
    if is_missing(value):
        return "NA"
    if dtype is ColumnType.NUMERIC:
        number = float(value)
        if math.isfinite(number) and number.is_integer() and abs(number) < 1e15:
            return str(int(number))
        return f"{number:.6g}"
    return str(value)
