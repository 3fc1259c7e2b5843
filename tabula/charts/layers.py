"""Statistical transforms behind chart layers.

Binning, boxplot statistics and reference-line extents are computed here
so the renderer only draws precomputed shapes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from tabula.aggregate import quantile_linear
from tabula.charts.spec import Geometry, Layer
from tabula.config import config
from tabula.table import ColumnType, Table, format_number, is_missing, value_sort_key

logger = logging.getLogger(__name__)

__all__ = [
    "BoxStats",
    "HistogramBin",
    "abline_frame",
    "assign_bins",
    "bin_edges",
    "boxplot_frames",
    "boxplot_groups",
    "boxplot_stats",
    "group_labels",
    "histogram_bins",
    "histogram_frame",
    "layer_table",
    "ordered_groups",
    "point_frame",
    "x_extent",
]


@dataclass(frozen=True)
class HistogramBin:
    """One histogram bar."""

    left: float
    right: float
    count: int


@dataclass(frozen=True)
class BoxStats:
    """Five-number summary with outliers.

    Attributes:
        lower: Lowest value within the lower fence
        q1: First quartile
        median: Median
        q3: Third quartile
        upper: Highest value within the upper fence
        outliers: Values beyond the fences, sorted

    """

    lower: float
    q1: float
    median: float
    q3: float
    upper: float
    outliers: tuple[float, ...]


def _present(values: Sequence[Any] | np.ndarray, what: str) -> np.ndarray:
    """Drop missing and non-finite values, logging how many were removed."""
    data = np.asarray(values, dtype=np.float64)
    finite = np.isfinite(data)
    removed = int(data.size - finite.sum())
    if removed:
        logger.warning("Removed %d rows containing non-finite values (%s)", removed, what)
    return data[finite]


def bin_edges(values: Sequence[float] | np.ndarray, bins: int) -> np.ndarray:
    """Return ``bins + 1`` equal-width edges spanning [min, max] of ``values``.

    Constant data is spread over [v - 0.5, v + 0.5].
    """
    data = np.asarray(values, dtype=np.float64)
    if bins < 1:
        raise ValueError(f"bins must be positive, got {bins}")
    if data.size == 0:
        return np.array([], dtype=np.float64)
    low, high = float(np.min(data)), float(np.max(data))
    if low == high:
        low, high = low - 0.5, high + 0.5
    return np.linspace(low, high, bins + 1)


def assign_bins(values: Sequence[float] | np.ndarray, edges: np.ndarray) -> np.ndarray:
    """Return the bin index of each value.

    Bins are right-closed, (e_k, e_k+1], except the first, which also
    holds its left edge.
    """
    data = np.asarray(values, dtype=np.float64)
    index = np.searchsorted(edges, data, side="left") - 1
    return np.clip(index, 0, len(edges) - 2)


def histogram_bins(
    values: Sequence[float] | np.ndarray,
    bins: int | None = None,
    edges: np.ndarray | None = None,
) -> list[HistogramBin]:
    """Count values into equal-width bins.

    Args:
        values: Numeric observations; missing values are dropped
        bins: Number of bins (default from config: 30)
        edges: Precomputed edges, to share bins between groups

    Returns:
        One HistogramBin per interval, left to right

    Example:
        >>> histogram_bins([1, 2, 3], bins=1)
        [HistogramBin(left=1.0, right=3.0, count=3)]

    """
    if bins is None:
        bins = config.histogram_bins
    data = _present(values, "histogram")
    if edges is None:
        edges = bin_edges(data, bins)
    if edges.size == 0:
        return []
    counts = np.bincount(assign_bins(data, edges), minlength=len(edges) - 1)
    return [
        HistogramBin(float(edges[k]), float(edges[k + 1]), int(counts[k]))
        for k in range(len(edges) - 1)
    ]


def boxplot_stats(
    values: Sequence[float] | np.ndarray, whisker: float | None = None
) -> BoxStats:
    """Compute boxplot statistics.

    Quartiles use inclusive linear interpolation over the sorted values.
    Whiskers reach the most extreme values within ``whisker`` times the
    interquartile range beyond the box.

    Args:
        values: Numeric observations; missing values are dropped
        whisker: Fence distance in IQRs (default from config: 1.5)

    Returns:
        Box statistics (all NaN when no values remain)

    """
    if whisker is None:
        whisker = config.boxplot_whisker
    data = np.sort(_present(values, "boxplot"))
    if data.size == 0:
        nan = float("nan")
        return BoxStats(nan, nan, nan, nan, nan, ())

    q1 = quantile_linear(data, 0.25)
    median = quantile_linear(data, 0.5)
    q3 = quantile_linear(data, 0.75)
    iqr = q3 - q1
    low_fence, high_fence = q1 - whisker * iqr, q3 + whisker * iqr
    inside = data[(data >= low_fence) & (data <= high_fence)]
    outliers = data[(data < low_fence) | (data > high_fence)]
    return BoxStats(
        lower=float(inside.min()),
        q1=q1,
        median=median,
        q3=q3,
        upper=float(inside.max()),
        outliers=tuple(float(v) for v in outliers),
    )


def group_labels(table: Table, column: str | None) -> list[str]:
    """Text label per row for a grouping channel (one shared group when unmapped)."""
    if column is None:
        return [""] * table.n_rows
    labels = []
    for value in table.column(column):
        if is_missing(value):
            labels.append("NA")
        elif isinstance(value, str):
            labels.append(value)
        else:
            labels.append(format_number(value))
    return labels


def ordered_groups(table: Table, column: str | None, labels: list[str]) -> list[str]:
    """Distinct labels of ``column``, ordered by the values they stand for."""
    if column is None:
        return [""]
    firsts: dict[str, Any] = {}
    for label, value in zip(labels, table.column(column)):
        firsts.setdefault(label, value)
    return sorted(firsts, key=lambda label: value_sort_key(firsts[label]))


def layer_table(layer: Layer) -> Table:
    """Return the table a data layer draws.

    Raises:
        ValueError: If the layer carries no table (a reference line)

    """
    if layer.table is None:
        raise ValueError(f"{layer.geometry.value} layer has no table")
    return layer.table


def point_frame(layer: Layer) -> pd.DataFrame:
    """Data for a scatter layer: x, y and the optional colour column."""
    table = layer_table(layer)
    columns = [layer.mapping["x"], layer.mapping["y"]]
    color = layer.column("color")
    if color is not None and color not in columns:
        columns.append(color)
    return table.to_pandas()[columns]


def histogram_frame(layer: Layer) -> pd.DataFrame:
    """Bars of a histogram layer.

    Every fill group is counted over the same edges. With position
    "stack" groups are stacked in label order; with "identity" each bar
    starts at zero so groups overlap.

    Returns:
        One row per (group, bin) with columns group, left, right, count,
        y0 and y1

    """
    table = layer_table(layer)
    bins = layer.options.bins or config.histogram_bins
    position = layer.options.position or config.histogram_position
    fill = layer.column("fill")

    x = table.column(layer.mapping["x"])
    finite = np.isfinite(x)
    labels = group_labels(table, fill)
    edges = bin_edges(_present(x, "histogram"), bins)

    rows = []
    stacked = np.zeros(max(len(edges) - 1, 0))
    label_array = np.asarray(labels, dtype=object)
    for group in ordered_groups(table, fill, labels):
        selected = x[(label_array == group) & finite]
        counts = histogram_bins(selected, bins, edges=edges) if edges.size else []
        for k, bar in enumerate(counts):
            y0 = stacked[k] if position == "stack" else 0.0
            rows.append(
                {
                    "group": group,
                    "left": bar.left,
                    "right": bar.right,
                    "count": bar.count,
                    "y0": y0,
                    "y1": y0 + bar.count,
                }
            )
            if position == "stack":
                stacked[k] += bar.count
    return pd.DataFrame(rows, columns=["group", "left", "right", "count", "y0", "y1"])


def boxplot_groups(layer: Layer) -> tuple[str, str | None]:
    """Return (value channel, grouping column) of a boxplot layer.

    The numeric axis is summarised. Rows are grouped by the categorical
    axis when one is mapped, else by the fill column, else not at all.
    """
    table = layer_table(layer)
    axes = [ch for ch in ("x", "y") if ch in layer.mapping]
    value_channel = next(
        ch for ch in axes if table.dtype(layer.mapping[ch]) is ColumnType.NUMERIC
    )
    group_channel = next((ch for ch in axes if ch != value_channel), None)
    if group_channel is not None:
        return value_channel, layer.mapping[group_channel]
    return value_channel, layer.column("fill")


def boxplot_frames(layer: Layer) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Boxes and outliers of a boxplot layer.

    Returns:
        (boxes, outliers). ``boxes`` has one row per group with group,
        lower, q1, median, q3 and upper; ``outliers`` has one row per
        outlying value with group and value.

    """
    table = layer_table(layer)
    value_channel, group_column = boxplot_groups(layer)

    values = table.column(layer.mapping[value_channel])
    labels = group_labels(table, group_column)
    label_array = np.asarray(labels, dtype=object)

    boxes = []
    outliers = []
    for group in ordered_groups(table, group_column, labels):
        stats = boxplot_stats(values[label_array == group])
        boxes.append(
            {
                "group": group,
                "lower": stats.lower,
                "q1": stats.q1,
                "median": stats.median,
                "q3": stats.q3,
                "upper": stats.upper,
            }
        )
        outliers.extend({"group": group, "value": v} for v in stats.outliers)
    return (
        pd.DataFrame(boxes, columns=["group", "lower", "q1", "median", "q3", "upper"]),
        pd.DataFrame(outliers, columns=["group", "value"]),
    )


def x_extent(layers: Sequence[Layer]) -> tuple[float, float]:
    """Numeric x range covered by the data layers (0..1 when there is none)."""
    lows, highs = [], []
    for layer in layers:
        column = layer.column("x")
        if layer.table is None or column is None:
            continue
        if layer.table.dtype(column) is not ColumnType.NUMERIC:
            continue
        data = layer.table.column(column)
        data = data[np.isfinite(data)]
        if data.size:
            lows.append(float(data.min()))
            highs.append(float(data.max()))
    if not lows:
        return 0.0, 1.0
    return min(lows), max(highs)


def abline_frame(layer: Layer, extent: tuple[float, float]) -> pd.DataFrame:
    """Endpoints of a reference line y = intercept + slope * x across ``extent``."""
    if layer.geometry is not Geometry.ABLINE:
        raise ValueError(f"Not a reference-line layer: {layer.geometry.value}")
    slope = float(layer.mapping["slope"])
    intercept = float(layer.mapping["intercept"])
    xs = [extent[0], extent[1]]
    return pd.DataFrame({"x": xs, "y": [intercept + slope * x for x in xs]})
