"""Chart rendering with Altair.

Compiles a Chart into a layered Vega-Lite specification and saves it as
JSON, HTML or, through vl-convert, as PNG, SVG or PDF.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import altair as alt
import pandas as pd

from tabula.charts import DEFAULT_MARK_COLOR, PALETTE
from tabula.charts.layers import (
    abline_frame,
    boxplot_frames,
    boxplot_groups,
    group_labels,
    histogram_frame,
    layer_table,
    ordered_groups,
    point_frame,
    x_extent,
)
from tabula.charts.spec import Chart, Geometry, Layer, StyleKind
from tabula.config import config
from tabula.errors import ChartOptionError, DataIOError
from tabula.table import ColumnType

logger = logging.getLogger(__name__)

__all__ = ["THEME_CONFIGS", "render", "save_chart", "to_altair"]

THEME_CONFIGS: dict[str, dict[str, dict[str, Any]]] = {
    "gray": {
        "view": {"fill": "#EBEBEB", "stroke": None},
        "axis": {"gridColor": "#FFFFFF", "domain": False, "tickColor": "#333333"},
    },
    "bw": {
        "view": {"fill": "#FFFFFF", "stroke": "#333333"},
        "axis": {"gridColor": "#EBEBEB", "domain": False, "tickColor": "#333333"},
    },
    "minimal": {
        "view": {"fill": "#FFFFFF", "stroke": None},
        "axis": {"gridColor": "#EBEBEB", "domain": False, "ticks": False},
    },
    "classic": {
        "view": {"fill": "#FFFFFF", "stroke": None},
        "axis": {"grid": False, "domain": True, "domainColor": "#000000"},
    },
}

_FORMATS = {".json", ".html", ".png", ".svg", ".pdf"}

_POSITION = {"x": alt.X, "y": alt.Y}
_POSITION2 = {"x": alt.X2, "y": alt.Y2}


def _field(column: str) -> str:
    """Escape a column name for use as a Vega-Lite field (dots mean nesting)."""
    for char in ("\\", ".", "[", "]"):
        column = column.replace(char, "\\" + char)
    return column


def _scale(column: str, layers: list[Layer]) -> alt.Scale:
    """Colour scale shared by every layer colouring by ``column``."""
    domain: list[str] = []
    for layer in layers:
        if layer.table is None or column not in (layer.column("color"), layer.column("fill")):
            continue
        labels = group_labels(layer.table, column)
        for label in ordered_groups(layer.table, column, labels):
            if label not in domain:
                domain.append(label)
    return alt.Scale(domain=domain, range=[PALETTE[i % len(PALETTE)] for i in range(len(domain))])


def _point_chart(layer: Layer, titles: dict[str, str], layers: list[Layer]) -> alt.Chart:
    table = layer_table(layer)
    encoding: dict[str, Any] = {}
    for channel in ("x", "y"):
        column = layer.mapping[channel]
        kind = "quantitative" if table.dtype(column) is ColumnType.NUMERIC else "nominal"
        encoding[channel] = _POSITION[channel](
            field=_field(column), type=kind, title=titles[channel], scale=alt.Scale(zero=False)
        )

    alpha = layer.options.alpha if layer.options.alpha is not None else 1.0
    mark: dict[str, Any] = {"filled": True, "opacity": alpha}
    color = layer.column("color")
    if color is None:
        mark["color"] = layer.options.color or DEFAULT_MARK_COLOR
    elif table.dtype(color) is ColumnType.NUMERIC:
        encoding["color"] = alt.Color(field=_field(color), type="quantitative", title=color)
    else:
        encoding["color"] = alt.Color(
            field=_field(color), type="nominal", title=color, scale=_scale(color, layers)
        )
    if layer.options.size:
        mark["size"] = layer.options.size
    return alt.Chart(point_frame(layer)).mark_point(**mark).encode(**encoding)


def _histogram_chart(layer: Layer, titles: dict[str, str], layers: list[Layer]) -> alt.Chart:
    frame = histogram_frame(layer)
    alpha = layer.options.alpha if layer.options.alpha is not None else config.histogram_alpha
    mark: dict[str, Any] = {"opacity": alpha, "binSpacing": 0, "stroke": None}
    encoding: dict[str, Any] = {
        "x": alt.X("left:Q", title=titles["x"]),
        "x2": alt.X2("right"),
        "y": alt.Y("y1:Q", title=titles["y"]),
        "y2": alt.Y2("y0"),
    }
    fill = layer.column("fill")
    if fill is not None:
        encoding["fill"] = alt.Fill("group:N", title=fill, scale=_scale(fill, layers))
    else:
        mark["color"] = layer.options.color or DEFAULT_MARK_COLOR
    return alt.Chart(frame).mark_bar(**mark).encode(**encoding)


def _boxplot_chart(layer: Layer, titles: dict[str, str], layers: list[Layer]) -> alt.LayerChart:
    boxes, outliers = boxplot_frames(layer)
    v, group_column = boxplot_groups(layer)
    g = "y" if v == "x" else "x"

    group_title = titles[g] if g in layer.mapping else group_column
    group = _POSITION[g](
        "group:N", title=group_title, axis=alt.Axis(labels=group_column is not None)
    )

    box_mark: dict[str, Any] = {"size": 20, "stroke": "#333333"}
    box_encoding: dict[str, Any] = {
        g: group,
        v: _POSITION[v]("q1:Q", title=titles[v], scale=alt.Scale(zero=False)),
        f"{v}2": _POSITION2[v]("q3"),
    }
    fill = layer.column("fill")
    if fill is not None:
        box_encoding["fill"] = alt.Fill("group:N", title=fill, scale=_scale(fill, layers))
    else:
        box_mark["color"] = layer.options.color or "#FFFFFF"

    whiskers = (
        alt.Chart(boxes)
        .mark_rule(color="#333333")
        .encode(**{g: group, v: _POSITION[v]("lower:Q"), f"{v}2": _POSITION2[v]("upper")})
    )
    box = alt.Chart(boxes).mark_bar(**box_mark).encode(**box_encoding)
    median = (
        alt.Chart(boxes)
        .mark_tick(color="#333333", size=20, thickness=2)
        .encode(**{g: group, v: _POSITION[v]("median:Q")})
    )
    parts = [whiskers, box, median]
    if len(outliers):
        parts.append(
            alt.Chart(outliers)
            .mark_point(color="#333333", filled=True)
            .encode(**{g: group, v: _POSITION[v]("value:Q")})
        )
    return alt.layer(*parts)


def _abline_chart(layer: Layer, titles: dict[str, str], extent: tuple[float, float]) -> alt.Chart:
    mark: dict[str, Any] = {"color": layer.options.color or "#000000"}
    if layer.options.size:
        mark["strokeWidth"] = layer.options.size
    return (
        alt.Chart(abline_frame(layer, extent))
        .mark_line(**mark)
        .encode(x=alt.X("x:Q", title=titles["x"]), y=alt.Y("y:Q", title=titles["y"]))
    )


def _axis_titles(chart: Chart) -> dict[str, str]:
    """Axis titles: explicit labels first, else the first mapped column."""
    styles = chart.resolved_styles()
    titles = {"x": "x", "y": "y"}
    for channel in ("y", "x"):
        for layer in chart.layers:
            if layer.geometry is Geometry.HISTOGRAM and channel == "y":
                titles["y"] = "count"
                break
            column = layer.column(channel)
            if column is not None:
                titles[channel] = column
                break
    if StyleKind.XLAB in styles:
        titles["x"] = styles[StyleKind.XLAB]
    if StyleKind.YLAB in styles:
        titles["y"] = styles[StyleKind.YLAB]
    return titles


def to_altair(
    chart: Chart, width: float | None = None, height: float | None = None
) -> alt.LayerChart:
    """Compile a chart into a configured Altair layer chart.

    Layers are drawn in order, later on top. Style entries apply to the
    whole chart wherever they were added.

    Args:
        chart: Chart specification
        width: Width in units (default: the chart's)
        height: Height in units (default: the chart's)

    Returns:
        Layered Altair chart with size, title and theme applied

    """
    width = chart.width if width is None else width
    height = chart.height if height is None else height
    styles = chart.resolved_styles()
    titles = _axis_titles(chart)
    layers = list(chart.layers)
    extent = x_extent(layers)

    compiled: list[alt.Chart | alt.LayerChart] = []
    for layer in layers:
        if layer.geometry is Geometry.POINT:
            compiled.append(_point_chart(layer, titles, layers))
        elif layer.geometry is Geometry.HISTOGRAM:
            compiled.append(_histogram_chart(layer, titles, layers))
        elif layer.geometry is Geometry.BOXPLOT:
            compiled.append(_boxplot_chart(layer, titles, layers))
        else:
            compiled.append(_abline_chart(layer, titles, extent))
    if not compiled:
        compiled.append(alt.Chart(pd.DataFrame({"x": []})).mark_point())

    result = alt.layer(*compiled).properties(
        width=round(width * config.pixels_per_unit),
        height=round(height * config.pixels_per_unit),
    )
    if StyleKind.TITLE in styles:
        result = result.properties(title=styles[StyleKind.TITLE])

    theme = THEME_CONFIGS[styles.get(StyleKind.THEME, config.default_theme)]
    result = result.configure(background="#FFFFFF")
    result = result.configure_view(**theme["view"]).configure_axis(**theme["axis"])
    logger.debug("Compiled chart with %d layers", len(layers))
    return result


def save_chart(compiled: alt.TopLevelMixin, path: str | Path) -> Path:
    """Save a compiled chart; the file suffix selects the format.

    JSON (Vega-Lite spec) and HTML are written by Altair directly; PNG,
    SVG and PDF need the vl-convert engine.

    Raises:
        ChartOptionError: If the suffix is not a supported format
        DataIOError: If the file cannot be written

    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in _FORMATS:
        raise ChartOptionError(f"Unsupported chart format {suffix!r} (expected {sorted(_FORMATS)})")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == ".png":
            compiled.save(str(path), scale_factor=config.png_scale_factor)
        else:
            compiled.save(str(path))
    except OSError as e:
        raise DataIOError(f"Cannot write chart to {path}: {e}") from e
    logger.info("Saved chart: %s", path)
    return path


def render(
    chart: Chart,
    path: str | Path | None = None,
    width: float | None = None,
    height: float | None = None,
) -> alt.LayerChart:
    """Render a chart, optionally saving it to ``path``.

    Args:
        chart: Chart specification
        path: Output file (.json, .html, .png, .svg or .pdf)
        width: Width in units (default 5)
        height: Height in units (default 3.5)

    Returns:
        The compiled Altair chart

    """
    compiled = to_altair(chart, width, height)
    if path is not None:
        save_chart(compiled, path)
    return compiled
