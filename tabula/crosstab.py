"""Frequency tables of one or two categorical variables."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from tabula.config import config
from tabula.errors import ConflictError, NotFoundError
from tabula.table import ColumnType, Table, format_number, is_missing, value_sort_key

logger = logging.getLogger(__name__)

__all__ = ["CrossTab", "add_margins", "crosstab"]


def _label_text(label: Any) -> str:
    return label if isinstance(label, str) else format_number(label)


@dataclass(frozen=True)
class CrossTab:
    """Counts over the distinct values of one or two variables.

    Attributes:
        names: Dimension names
        labels: Category labels per dimension, sorted
        counts: Integer counts with one axis per dimension
        margin_label: Label of the total entries, if margins were added

    """

    names: tuple[str, ...]
    labels: tuple[tuple[Any, ...], ...]
    counts: np.ndarray
    margin_label: str | None = None

    @property
    def ndim(self) -> int:
        """Number of dimensions (1 or 2)."""
        return len(self.names)

    def count(self, *labels: Any) -> int:
        """Return the count at the given category labels.

        Raises:
            NotFoundError: If a label is not a category of its dimension

        """
        if len(labels) != self.ndim:
            raise ValueError(f"Expected {self.ndim} labels, got {len(labels)}")
        index = []
        for dim, label in enumerate(labels):
            try:
                index.append(self.labels[dim].index(label))
            except ValueError:
                raise NotFoundError(
                    f"{label!r} is not a category of {self.names[dim]!r}"
                ) from None
        return int(self.counts[tuple(index)])

    def to_table(self) -> Table:
        """Convert to a Table.

        One-way tables give columns ``<name>, n``. Two-way tables give one
        row per first-dimension label and one column per second-dimension
        label.
        """
        first = [_label_text(v) if self.margin_label else v for v in self.labels[0]]
        if self.ndim == 1:
            return Table([(self.names[0], first), ("n", self.counts.astype(np.float64))])
        pairs: list[tuple[str, Any]] = [(self.names[0], first)]
        for j, label in enumerate(self.labels[1]):
            pairs.append((_label_text(label), self.counts[:, j].astype(np.float64)))
        return Table(pairs, dtypes={name: ColumnType.NUMERIC for name, _ in pairs[1:]})

    def to_string(self) -> str:
        """Render as aligned text with the dimension names as headers."""
        if self.ndim == 1:
            header = [_label_text(v) for v in self.labels[0]]
            values = [str(int(c)) for c in self.counts]
            widths = [max(len(h), len(v)) for h, v in zip(header, values)]
            return "\n".join(
                [
                    self.names[0],
                    " ".join(h.rjust(w) for h, w in zip(header, widths)),
                    " ".join(v.rjust(w) for v, w in zip(values, widths)),
                ]
            )

        row_labels = [_label_text(v) for v in self.labels[0]]
        col_labels = [_label_text(v) for v in self.labels[1]]
        stub = max([len(self.names[0])] + [len(r) for r in row_labels])
        widths = [
            max([len(c)] + [len(str(int(v))) for v in self.counts[:, j]])
            for j, c in enumerate(col_labels)
        ]
        lines = [" " * stub + " " + self.names[1]]
        lines.append(
            self.names[0].ljust(stub)
            + " "
            + " ".join(c.rjust(w) for c, w in zip(col_labels, widths))
        )
        for i, label in enumerate(row_labels):
            cells = [str(int(v)).rjust(w) for v, w in zip(self.counts[i], widths)]
            lines.append(label.ljust(stub) + " " + " ".join(cells))
        return "\n".join(line.rstrip() for line in lines)

    def __str__(self) -> str:
        """Return the printed form of the table."""
        return self.to_string()


def _normalise(value: Any) -> Any:
    if isinstance(value, (np.floating, np.integer)):
        return float(value)
    return value


def crosstab(
    a: Sequence[Any] | np.ndarray,
    b: Sequence[Any] | np.ndarray | None = None,
    names: Sequence[str] | None = None,
) -> CrossTab:
    """Count occurrences of each category, or category pair.

    Observations with a missing value in any input are not counted.
    Categories are ordered by sorting their labels.

    Args:
        a: First variable
        b: Optional second variable, same length as ``a``
        names: Dimension names (default: "a" and "b")

    Returns:
        One- or two-way count table including zero cells

    Raises:
        ValueError: If the inputs have different lengths

    """
    variables = [list(a)] if b is None else [list(a), list(b)]
    if len(variables) == 2 and len(variables[0]) != len(variables[1]):
        raise ValueError(
            f"Cross-tab inputs differ in length: {len(variables[0])} vs {len(variables[1])}"
        )
    if names is None:
        names = ("a", "b")[: len(variables)]
    if len(names) != len(variables):
        raise ValueError(f"Expected {len(variables)} dimension names, got {len(names)}")

    observations = [
        tuple(_normalise(v) for v in obs)
        for obs in zip(*variables)
        if not any(is_missing(v) for v in obs)
    ]
    dropped = len(variables[0]) - len(observations)
    if dropped:
        logger.debug("Cross-tab ignored %d observations with missing values", dropped)

    labels = tuple(
        tuple(sorted({obs[dim] for obs in observations}, key=value_sort_key))
        for dim in range(len(variables))
    )
    positions = [{label: i for i, label in enumerate(dim_labels)} for dim_labels in labels]
    counts = np.zeros(tuple(len(dim_labels) for dim_labels in labels), dtype=np.int64)
    for obs in observations:
        counts[tuple(positions[dim][v] for dim, v in enumerate(obs))] += 1

    return CrossTab(tuple(names), labels, counts)


def add_margins(table: CrossTab, label: str | None = None) -> CrossTab:
    """Append totals along every dimension.

    A one-way table gains a total entry; a two-way table gains a row of
    column totals, a column of row totals and the grand total.

    Args:
        table: Cross-tab without margins
        label: Label of the total entries (default from config: "Sum")

    Returns:
        New cross-tab with margins

    Raises:
        ConflictError: If a real category already uses the label

    """
    if label is None:
        label = config.margin_label
    for name, dim_labels in zip(table.names, table.labels):
        if label in dim_labels:
            raise ConflictError(f"Margin label {label!r} is already a category of {name!r}")

    counts = table.counts
    if table.ndim == 1:
        counts = np.append(counts, counts.sum())
    else:
        counts = np.vstack([counts, counts.sum(axis=0, keepdims=True)])
        counts = np.hstack([counts, counts.sum(axis=1, keepdims=True)])

    labels = tuple(dim_labels + (label,) for dim_labels in table.labels)
    return CrossTab(table.names, labels, counts, margin_label=label)
