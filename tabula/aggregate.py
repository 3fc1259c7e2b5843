"""Aggregation functions for summarize and describe.

Missing-value rules:

- ``count`` counts rows, missing values included.
- Any other aggregation returns the missing marker when an input is
  missing, unless ``na_rm`` is set; with ``na_rm`` missing inputs are
  dropped first.
- When no values remain the result is missing, except ``sum`` which is 0.
- ``sd`` and ``var`` use the n - 1 denominator and need two values.
- Quantiles use inclusive linear interpolation (Hyndman-Fan type 7).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from tabula.errors import EvaluationError
from tabula.table import ColumnType, Table, is_missing

logger = logging.getLogger(__name__)

__all__ = [
    "Aggregation",
    "count",
    "describe",
    "max_",
    "mean",
    "median",
    "min_",
    "n_distinct",
    "quantile",
    "quantile_linear",
    "sd",
    "sum_",
    "var",
]


def quantile_linear(values: Sequence[float] | np.ndarray, q: float) -> float:
    """Compute a quantile by inclusive linear interpolation.

    The sorted values sit at positions 0..n-1 and quantile ``q`` is read
    at position ``q * (n - 1)``, interpolating between neighbours.

    Args:
        values: Non-missing numeric values
        q: Probability in [0, 1]

    Returns:
        Interpolated quantile, NaN for empty input

    Example:
        >>> quantile_linear(range(1, 11), 0.25)
        3.25

    """
    if not 0.0 <= q <= 1.0:
        raise EvaluationError(f"Quantile probability must be in [0, 1], got {q}")
    data = np.asarray(values, dtype=np.float64)
    if data.size == 0:
        return float("nan")
    return float(np.quantile(data, q, method="linear"))


def _sd(values: np.ndarray) -> float:
    return float(np.std(values, ddof=1)) if values.size >= 2 else float("nan")


def _var(values: np.ndarray) -> float:
    return float(np.var(values, ddof=1)) if values.size >= 2 else float("nan")


# Numeric reducers. Each receives a non-empty float array with no NaN.
_NUMERIC_FUNCTIONS: dict[str, Callable[[np.ndarray], float]] = {
    "mean": lambda v: float(np.mean(v)),
    "sum": lambda v: float(np.sum(v)),
    "median": lambda v: quantile_linear(v, 0.5),
    "min": lambda v: float(np.min(v)),
    "max": lambda v: float(np.max(v)),
    "sd": _sd,
    "var": _var,
}

_ROW_FUNCTIONS = ("count", "n_distinct")


@dataclass(frozen=True)
class Aggregation:
    """Reduction of one input column to a single value per group.

    Attributes:
        function: Name of a built-in aggregation, or a callable receiving
            the group's values as a list (missing values as None)
        column: Input column (not needed for ``count``)
        na_rm: Drop missing values before aggregating
        q: Probability for ``quantile``

    """

    function: str | Callable[[list[Any]], Any]
    column: str | None = None
    na_rm: bool = False
    q: float | None = None

    @property
    def name(self) -> str:
        """Readable function name."""
        if callable(self.function):
            return getattr(self.function, "__name__", "custom")
        return self.function

    def validate(self, table: Table) -> None:
        """Check the aggregation against a table before any group is computed.

        Raises:
            EvaluationError: If the function is unknown, takes no column, or
                is numeric but applied to a categorical column
            ColumnNotFoundError: If the input column does not exist

        """
        if callable(self.function):
            if self.column is not None:
                table.require(self.column)
            return
        if self.function == "count":
            return
        if self.function not in _NUMERIC_FUNCTIONS and self.function not in (
            "n_distinct",
            "quantile",
        ):
            raise EvaluationError(f"Unknown aggregation function: {self.function!r}")
        if self.column is None:
            raise EvaluationError(f"Aggregation {self.function!r} needs an input column")
        table.require(self.column)
        if self.function != "n_distinct" and table.dtype(self.column) is ColumnType.CATEGORICAL:
            raise EvaluationError(
                f"Cannot compute {self.function} of categorical column {self.column!r}"
            )
        if self.function == "quantile" and self.q is None:
            raise EvaluationError("Quantile aggregation needs a probability q")

    def apply(self, table: Table, indices: np.ndarray) -> Any:
        """Aggregate the rows at ``indices`` of ``table``.

        Args:
            table: Source table (already validated)
            indices: Row positions of one group

        Returns:
            Aggregated value; None or NaN for a missing result

        """
        if self.function == "count":
            return float(len(indices))

        if callable(self.function):
            if self.column is None:
                values: list[Any] = [table.row(int(i)) for i in indices]
            else:
                source = table.to_list(self.column)
                values = [source[int(i)] for i in indices]
                if self.na_rm:
                    values = [v for v in values if not is_missing(v)]
            try:
                return self.function(values)
            except Exception as e:
                raise EvaluationError(f"Aggregation {self.name!r} failed: {e}") from e

        column = table.column(str(self.column))[indices]

        if self.function == "n_distinct":
            seen = {None if is_missing(v) else v for v in column}
            if self.na_rm:
                seen.discard(None)
            return float(len(seen))

        missing = np.isnan(column)
        if missing.any():
            if not self.na_rm:
                return float("nan")
            column = column[~missing]
        if column.size == 0:
            return 0.0 if self.function == "sum" else float("nan")
        if self.function == "quantile":
            return quantile_linear(column, float(self.q))  # type: ignore[arg-type]
        return _NUMERIC_FUNCTIONS[self.function](column)


def count() -> Aggregation:
    """Count rows per group, missing values included."""
    return Aggregation("count")


def n_distinct(column: str, na_rm: bool = False) -> Aggregation:
    """Count distinct values; missing counts as one value unless na_rm."""
    return Aggregation("n_distinct", column, na_rm)


def mean(column: str, na_rm: bool = False) -> Aggregation:
    """Arithmetic mean."""
    return Aggregation("mean", column, na_rm)


def sum_(column: str, na_rm: bool = False) -> Aggregation:
    """Sum (0 for an empty group after dropping missing values)."""
    return Aggregation("sum", column, na_rm)


def median(column: str, na_rm: bool = False) -> Aggregation:
    """Median by linear interpolation."""
    return Aggregation("median", column, na_rm)


def min_(column: str, na_rm: bool = False) -> Aggregation:
    """Minimum."""
    return Aggregation("min", column, na_rm)


def max_(column: str, na_rm: bool = False) -> Aggregation:
    """Maximum."""
    return Aggregation("max", column, na_rm)


def sd(column: str, na_rm: bool = False) -> Aggregation:
    """Sample standard deviation."""
    return Aggregation("sd", column, na_rm)


def var(column: str, na_rm: bool = False) -> Aggregation:
    """Sample variance."""
    return Aggregation("var", column, na_rm)


def quantile(column: str, q: float, na_rm: bool = False) -> Aggregation:
    """Quantile ``q`` by linear interpolation."""
    return Aggregation("quantile", column, na_rm, q)


def describe(table: Table) -> Table:
    """Summarize every column of a table.

    Numeric columns report min, quartiles, mean and max over their
    non-missing values; categorical columns report only counts.

    Args:
        table: Table to describe

    Returns:
        One row per input column with columns ``column, type, n,
        n_missing, n_distinct, min, q1, median, mean, q3, max``

    """
    records = []
    for name in table.column_names:
        dtype = table.dtype(name)
        values = table.to_list(name)
        present = [v for v in values if v is not None]
        record: dict[str, Any] = {
            "column": name,
            "type": dtype.value,
            "n": len(values),
            "n_missing": len(values) - len(present),
            "n_distinct": len(set(present)),
        }
        if dtype is ColumnType.NUMERIC and present:
            data = np.asarray(present, dtype=np.float64)
            record.update(
                min=float(np.min(data)),
                q1=quantile_linear(data, 0.25),
                median=quantile_linear(data, 0.5),
                mean=float(np.mean(data)),
                q3=quantile_linear(data, 0.75),
                max=float(np.max(data)),
            )
        else:
            record.update(min=None, q1=None, median=None, mean=None, q3=None, max=None)
        records.append(record)

    columns = ["column", "type", "n", "n_missing", "n_distinct"]
    columns += ["min", "q1", "median", "mean", "q3", "max"]
    return Table(
        [(c, [r[c] for r in records]) for c in columns],
        dtypes={c: ColumnType.NUMERIC for c in columns[2:]},
    )
