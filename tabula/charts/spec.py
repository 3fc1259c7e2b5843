"""Declarative chart specifications.

A Chart is an immutable list of data layers plus global style entries.
Nothing is drawn until ``render``; building a chart only validates the
layer bindings against their tables.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tabula.config import config
from tabula.errors import ChartOptionError, MissingChannelError
from tabula.table import ColumnType, Table

logger = logging.getLogger(__name__)

__all__ = [
    "CHANNELS",
    "THEMES",
    "Chart",
    "Geometry",
    "Layer",
    "LayerOptions",
    "Style",
    "StyleKind",
    "add_layer",
    "add_style",
    "new_chart",
]


class Geometry(str, Enum):
    """Kind of mark a data layer draws."""

    POINT = "point"
    HISTOGRAM = "histogram"
    BOXPLOT = "boxplot"
    ABLINE = "abline"


class StyleKind(str, Enum):
    """Kind of global style entry."""

    THEME = "theme"
    XLAB = "xlab"
    YLAB = "ylab"
    TITLE = "title"


THEMES = ("gray", "bw", "minimal", "classic")

# Channels each geometry accepts, and which of them are required.
CHANNELS: dict[Geometry, dict[str, bool]] = {
    Geometry.POINT: {"x": True, "y": True, "color": False},
    Geometry.HISTOGRAM: {"x": True, "fill": False},
    Geometry.BOXPLOT: {"x": False, "y": False, "fill": False},
    Geometry.ABLINE: {"slope": True, "intercept": True},
}


class LayerOptions(BaseModel):
    """Per-layer drawing options; unset fields fall back to config at render time."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    bins: int | None = Field(None, gt=0, description="Histogram bin count")
    position: Literal["stack", "identity"] | None = Field(
        None, description="Placement of histogram fill groups"
    )
    alpha: float | None = Field(None, ge=0.0, le=1.0, description="Mark opacity")
    color: str | None = Field(None, description="Constant mark colour")
    size: float | None = Field(None, gt=0, description="Point size or line width")


@dataclass(frozen=True)
class Layer:
    """One data layer of a chart.

    Attributes:
        geometry: Mark kind
        table: Data drawn by the layer (None for reference lines)
        mapping: Channel -> column name, or -> number for slope/intercept
        options: Validated drawing options

    """

    geometry: Geometry
    table: Table | None
    mapping: dict[str, Any]
    options: LayerOptions

    def column(self, channel: str) -> str | None:
        """Return the column bound to ``channel``, if any."""
        value = self.mapping.get(channel)
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class Style:
    """One global style entry."""

    kind: StyleKind
    value: str


@dataclass(frozen=True)
class Chart:
    """Immutable chart specification.

    Attributes:
        layers: Data layers, drawn in order (later on top)
        styles: Global style entries; the last entry of a kind wins
        width: Output width in units
        height: Output height in units

    """

    layers: tuple[Layer, ...] = ()
    styles: tuple[Style, ...] = ()
    width: float = field(default_factory=lambda: config.figure_width)
    height: float = field(default_factory=lambda: config.figure_height)

    def resolved_styles(self) -> dict[StyleKind, str]:
        """Return the effective value of each style kind that was set."""
        resolved: dict[StyleKind, str] = {}
        for style in self.styles:
            resolved[style.kind] = style.value
        return resolved


def new_chart(width: float | None = None, height: float | None = None) -> Chart:
    """Return an empty chart of the given size (default 5 x 3.5 units)."""
    width = config.figure_width if width is None else width
    height = config.figure_height if height is None else height
    if width <= 0 or height <= 0:
        raise ChartOptionError(f"Chart size must be positive, got {width} x {height}")
    return Chart(width=width, height=height)


def _validate_mapping(
    geometry: Geometry, table: Table | None, mapping: Mapping[str, Any]
) -> None:
    accepted = CHANNELS[geometry]
    unknown = set(mapping) - set(accepted)
    if unknown:
        raise ChartOptionError(
            f"{geometry.value} layer does not accept channels {sorted(unknown)} "
            f"(accepted: {sorted(accepted)})"
        )
    missing = [ch for ch, required in accepted.items() if required and ch not in mapping]
    if missing:
        raise MissingChannelError(
            f"{geometry.value} layer requires channels {missing}, got {sorted(mapping)}"
        )

    if geometry is Geometry.ABLINE:
        for channel in ("slope", "intercept"):
            value = mapping[channel]
            if isinstance(value, bool) or not isinstance(value, Real):
                raise ChartOptionError(f"abline {channel} must be a number, got {value!r}")
        return

    if table is None:
        raise ChartOptionError(f"{geometry.value} layer needs a table")
    for channel, column in mapping.items():
        if not isinstance(column, str):
            raise ChartOptionError(f"Channel {channel!r} must name a column, got {column!r}")
    table.require(*mapping.values())

    if geometry is Geometry.HISTOGRAM:
        if table.dtype(mapping["x"]) is not ColumnType.NUMERIC:
            raise ChartOptionError(f"Histogram x column {mapping['x']!r} must be numeric")
    elif geometry is Geometry.BOXPLOT:
        axes = [ch for ch in ("x", "y") if ch in mapping]
        if not axes:
            raise MissingChannelError("boxplot layer requires an x or a y channel")
        numeric = [ch for ch in axes if table.dtype(mapping[ch]) is ColumnType.NUMERIC]
        if len(numeric) != 1:
            raise ChartOptionError(
                "boxplot needs exactly one numeric axis to summarise, "
                f"got numeric channels {numeric} of {axes}"
            )
        group_axes = [ch for ch in axes if ch not in numeric]
        fill = mapping.get("fill")
        if fill is not None and group_axes and mapping[group_axes[0]] != fill:
            raise ChartOptionError(
                f"boxplot fill {fill!r} must map the grouping column {mapping[group_axes[0]]!r}"
            )


def add_layer(
    chart: Chart,
    geometry: Geometry | str,
    table: Table | None = None,
    mapping: Mapping[str, Any] | None = None,
    **options: Any,
) -> Chart:
    """Return ``chart`` with a data layer appended.

    Channel requirements by geometry:

    - point: x and y; color optional
    - histogram: numeric x; fill optional; options bins, position, alpha
    - boxplot: an x or a y channel. With both, the categorical one groups
      the rows and the numeric one is summarised. fill optional.
    - abline: slope and intercept as numbers, no table

    Args:
        chart: Chart to extend
        geometry: Mark kind
        table: Layer data
        mapping: Channel -> column name
        **options: Drawing options (see LayerOptions)

    Returns:
        New chart

    Raises:
        MissingChannelError: If a required channel is not mapped
        ColumnNotFoundError: If a mapped column is not in the table
        ChartOptionError: If the geometry, a channel or an option is invalid

    """
    try:
        geometry = Geometry(geometry)
    except ValueError:
        raise ChartOptionError(
            f"Unknown geometry {geometry!r} (expected one of {[g.value for g in Geometry]})"
        ) from None

    mapping = dict(mapping or {})
    _validate_mapping(geometry, table, mapping)

    try:
        layer_options = LayerOptions.model_validate(options)
    except ValidationError as e:
        raise ChartOptionError(f"Invalid {geometry.value} layer options: {e}") from e

    layer_table = None if geometry is Geometry.ABLINE else table
    layer = Layer(geometry, layer_table, mapping, layer_options)
    logger.debug("Added %s layer with mapping %s", geometry.value, mapping)
    return dataclasses.replace(chart, layers=chart.layers + (layer,))


def add_style(chart: Chart, kind: StyleKind | str, value: str) -> Chart:
    """Return ``chart`` with a global style entry appended.

    Args:
        chart: Chart to extend
        kind: "theme", "xlab", "ylab" or "title"
        value: Theme name or label text

    Raises:
        ChartOptionError: If the kind or the theme name is unknown

    """
    try:
        kind = StyleKind(kind)
    except ValueError:
        raise ChartOptionError(
            f"Unknown style {kind!r} (expected one of {[k.value for k in StyleKind]})"
        ) from None
    if kind is StyleKind.THEME and value not in THEMES:
        raise ChartOptionError(f"Unknown theme {value!r} (expected one of {list(THEMES)})")
    return dataclasses.replace(chart, styles=chart.styles + (Style(kind, str(value)),))
