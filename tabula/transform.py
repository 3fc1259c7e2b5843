"""Table transforms.

Each transform is a free function that takes a Table (or GroupedTable)
and returns a new value, so a pipeline is a chain of ``Table.pipe``
calls:

    >>> (iris
    ...     .pipe(filter_rows, lambda r: r["Sepal.Length"] > 5)
    ...     .pipe(group_by, ["Species"])
    ...     .pipe(summarize, {"n": count(), "mean_width": mean("Sepal.Width")}))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import numpy as np

from tabula.aggregate import Aggregation
from tabula.errors import (
    ColumnNotFoundError,
    ConflictError,
    DuplicateKeyError,
    EvaluationError,
)
from tabula.table import (
    MISSING,
    ColumnType,
    Row,
    Table,
    format_number,
    infer_type,
    is_missing,
    value_sort_key,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Group",
    "GroupedTable",
    "arrange",
    "filter_rows",
    "gather",
    "group_by",
    "mutate",
    "select",
    "spread",
    "summarize",
    "ungroup",
]

RowExpression = Callable[[Row], Any]


def _key_value(value: Any) -> Any:
    """Normalise a cell for use in a grouping key (missing equals missing)."""
    if is_missing(value):
        return MISSING
    if isinstance(value, np.floating):
        return float(value)
    return value


def _evaluate(expression: RowExpression, row: Row, what: str) -> Any:
    try:
        with np.errstate(all="ignore"):
            return expression(row)
    except ColumnNotFoundError as e:
        raise EvaluationError(f"{what} references an undefined column: {e}") from e
    except Exception as e:
        raise EvaluationError(f"{what} failed on row {row.index + 1}: {e}") from e


def select(table: Table, columns: Sequence[str]) -> Table:
    """Project onto ``columns``, in the order given.

    Raises:
        ColumnNotFoundError: If any name is not a column

    """
    if isinstance(columns, str):
        columns = [columns]
    table.require(*columns)
    if len(set(columns)) != len(columns):
        raise ConflictError(f"Column selected more than once: {list(columns)}")
    return Table([(name, table.column(name)) for name in columns], dtypes=table.dtypes)


def filter_rows(table: Table, predicate: RowExpression) -> Table:
    """Keep the rows for which ``predicate(row)`` is true.

    Rows where the predicate yields a missing value are dropped.

    Raises:
        EvaluationError: If the predicate fails on any row

    """
    keep = []
    undefined = 0
    for row in table.rows():
        result = _evaluate(predicate, row, "Filter predicate")
        if is_missing(result):
            undefined += 1
        elif result:
            keep.append(row.index)
    if undefined:
        logger.warning("Filter dropped %d rows where the predicate was missing", undefined)
    return table.take(keep)


def arrange(table: Table, *columns: str, descending: bool = False) -> Table:
    """Sort rows by one or more columns.

    The sort is stable and missing values always sort last.

    Args:
        table: Table to sort
        *columns: Sort keys, most significant first
        descending: Reverse the order of non-missing values

    Returns:
        Sorted table

    """
    table.require(*columns)
    order = list(range(table.n_rows))
    for name in reversed(columns):
        col = table.column(name)
        present = [i for i in order if not is_missing(col[i])]
        absent = [i for i in order if is_missing(col[i])]
        present.sort(key=lambda i: value_sort_key(col[i]), reverse=descending)
        order = present + absent
    return table.take(order)


def mutate(table: Table, name: str, expression: RowExpression) -> Table:
    """Add or replace column ``name`` with ``expression`` evaluated per row.

    Numeric cells reach the expression as numpy.float64, so a division by
    zero yields inf or nan instead of an error.

    Example:
        >>> mutate(mtcars, "wt_kg", lambda r: r["wt"] * 1000 / 2.2046)

    Args:
        table: Source table
        name: Column to create or replace
        expression: Function of a Row returning the new value

    Returns:
        Table with the same rows and the new column

    Raises:
        EvaluationError: If the expression is not callable, references an
            undefined column or fails on any row

    """
    if not callable(expression):
        raise EvaluationError(f"Expression for column {name!r} must be callable")
    values = [_evaluate(expression, row, f"Expression for {name!r}") for row in table.rows()]
    logger.debug("Mutated column %r over %d rows", name, len(values))
    return table.with_column(name, values)


@dataclass(frozen=True)
class Group:
    """One partition of a grouped table.

    Attributes:
        key: Values of the key columns (missing as None)
        indices: Row positions in the source table, ascending

    """

    key: tuple[Any, ...]
    indices: np.ndarray

    def __len__(self) -> int:
        """Return the number of rows in the group."""
        return len(self.indices)


@dataclass(frozen=True)
class GroupedTable:
    """A table partitioned by key columns.

    Groups are ordered by the first appearance of each distinct key.
    """

    table: Table
    keys: tuple[str, ...]
    groups: tuple[Group, ...]

    @property
    def n_groups(self) -> int:
        """Number of groups."""
        return len(self.groups)

    def __iter__(self) -> Iterator[tuple[tuple[Any, ...], Table]]:
        """Iterate over (key, rows of that group)."""
        for group in self.groups:
            yield group.key, self.table.take(group.indices)

    def pipe(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Apply ``func(self, *args, **kwargs)``, for left-to-right chaining."""
        return func(self, *args, **kwargs)


def group_by(table: Table, keys: Sequence[str]) -> GroupedTable:
    """Partition rows by the values of ``keys``.

    Two rows share a group iff they agree on every key column, treating
    missing as equal to missing. An empty key list yields one group
    holding every row.

    Raises:
        ColumnNotFoundError: If a key is not a column

    """
    if isinstance(keys, str):
        keys = [keys]
    table.require(*keys)
    columns = [table.column(k) for k in keys]

    positions: dict[tuple[Any, ...], list[int]] = {}
    if not keys:
        positions[()] = list(range(table.n_rows))
    else:
        for i in range(table.n_rows):
            key = tuple(_key_value(col[i]) for col in columns)
            positions.setdefault(key, []).append(i)

    groups = tuple(Group(k, np.asarray(v, dtype=np.intp)) for k, v in positions.items())
    logger.debug("Grouped %d rows by %s into %d groups", table.n_rows, list(keys), len(groups))
    return GroupedTable(table, tuple(keys), groups)


def ungroup(grouped: GroupedTable) -> Table:
    """Return the table underlying a grouping."""
    return grouped.table


def summarize(
    data: Table | GroupedTable,
    aggregations: Mapping[str, Aggregation],
    max_workers: int | None = None,
) -> Table:
    """Reduce each group to one row.

    Args:
        data: Grouped table, or a plain table treated as a single group
        aggregations: Output column name -> aggregation, in output order
        max_workers: Aggregate groups on a thread pool of this size; the
            output keeps group order whatever the completion order

    Returns:
        Table with the key columns followed by one column per aggregation

    Raises:
        ConflictError: If an output name repeats a key column
        ColumnNotFoundError: If an aggregation reads an unknown column
        EvaluationError: If an aggregation is invalid or fails

    """
    grouped = data if isinstance(data, GroupedTable) else group_by(data, [])
    table = grouped.table

    for name, aggregation in aggregations.items():
        if name in grouped.keys:
            raise ConflictError(f"Summary column {name!r} repeats a group key")
        if not isinstance(aggregation, Aggregation):
            raise EvaluationError(f"Summary column {name!r} is not an Aggregation")
        aggregation.validate(table)

    def summarize_group(group: Group) -> list[Any]:
        return [agg.apply(table, group.indices) for agg in aggregations.values()]

    if max_workers is not None and max_workers > 1 and grouped.n_groups > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(summarize_group, grouped.groups))
    else:
        results = [summarize_group(group) for group in grouped.groups]

    pairs: list[tuple[str, list[Any]]] = []
    dtypes = {}
    for position, key in enumerate(grouped.keys):
        pairs.append((key, [group.key[position] for group in grouped.groups]))
        dtypes[key] = table.dtype(key)
    for position, name in enumerate(aggregations):
        pairs.append((name, [row[position] for row in results]))

    logger.debug("Summarized %d groups into %d columns", grouped.n_groups, len(pairs))
    return Table(pairs, dtypes=dtypes)


def _label(value: Any) -> str:
    if is_missing(value):
        return "NA"
    if isinstance(value, str):
        return value
    return format_number(value)


def spread(table: Table, key: str, value: str, fill: Any = MISSING) -> Table:
    """Pivot long rows into wide columns.

    Rows are identified by every column other than ``key`` and ``value``,
    in first-appearance order. Each distinct key value becomes a column
    (sorted, named by its text form) holding the matching ``value``
    cells; cells with no source row get ``fill``.

    Raises:
        ColumnNotFoundError: If ``key`` or ``value`` is not a column
        DuplicateKeyError: If two source rows map to the same cell
        ConflictError: If a new column name equals an identifying column

    """
    table.require(key, value)
    id_names = [n for n in table.column_names if n not in (key, value)]
    id_columns = [table.column(n) for n in id_names]
    key_column = table.column(key)
    value_column = table.column(value)

    row_ids: dict[tuple[Any, ...], int] = {}
    key_values: dict[Any, str] = {}
    cells: dict[tuple[int, str], Any] = {}
    for i in range(table.n_rows):
        identity = tuple(_key_value(col[i]) for col in id_columns)
        out_row = row_ids.setdefault(identity, len(row_ids))
        raw_key = _key_value(key_column[i])
        label = key_values.setdefault(raw_key, _label(raw_key))
        if (out_row, label) in cells:
            raise DuplicateKeyError(
                f"Rows for {dict(zip(id_names, identity))} have more than one "
                f"{value!r} value for {key}={label!r}"
            )
        cells[(out_row, label)] = value_column[i]

    labels = [key_values[k] for k in sorted(key_values, key=value_sort_key)]
    for label in labels:
        if label in id_names:
            raise ConflictError(f"Spread column {label!r} collides with an existing column")

    identities = list(row_ids)
    pairs: list[tuple[str, list[Any]]] = [
        (name, [identity[pos] for identity in identities]) for pos, name in enumerate(id_names)
    ]
    dtypes = {name: table.dtype(name) for name in id_names}
    value_dtype = table.dtype(value)
    for label in labels:
        values = [cells.get((r, label), fill) for r in range(len(identities))]
        pairs.append((label, values))
        if is_missing(fill):
            dtypes[label] = value_dtype
        else:
            dtypes[label] = infer_type(values)
    return Table(pairs, dtypes=dtypes)


def gather(table: Table, key: str, value: str, columns: Sequence[str]) -> Table:
    """Stack wide columns into key/value rows.

    Rows come out column by column: every row for the first gathered
    column, then every row for the next, and so on.

    Args:
        table: Wide table
        key: Name of the new column holding the gathered column names
        value: Name of the new column holding their values
        columns: Columns to gather

    Returns:
        Long table with the remaining columns, then ``key`` and ``value``

    """
    table.require(*columns)
    id_names = [n for n in table.column_names if n not in columns]
    if key in id_names or value in id_names or key == value:
        raise ConflictError(f"Gather output columns {key!r}/{value!r} collide with {id_names}")

    n = table.n_rows
    id_indices = np.tile(np.arange(n, dtype=np.intp), len(columns))
    pairs: list[tuple[str, Any]] = [(name, table.column(name)[id_indices]) for name in id_names]
    dtypes = {name: table.dtype(name) for name in id_names}

    pairs.append((key, [name for name in columns for _ in range(n)]))
    dtypes[key] = ColumnType.CATEGORICAL

    stacked: list[Any] = []
    for name in columns:
        stacked.extend(table.to_list(name))
    pairs.append((value, stacked))
    if all(table.dtype(name) is ColumnType.NUMERIC for name in columns):
        dtypes[value] = ColumnType.NUMERIC
    else:
        dtypes[value] = ColumnType.CATEGORICAL
    return Table(pairs, dtypes=dtypes)
