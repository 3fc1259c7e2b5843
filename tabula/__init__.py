"""tabula - load, transform, summarize and chart small tables.

This package provides the building blocks of a first data-analysis
session: loaders for delimited files, bundled datasets and serialized
objects; pipe-style table transforms with grouped aggregation; cross-tabs;
and layered charts rendered through Altair.
"""

from tabula.aggregate import (
    Aggregation,
    count,
    describe,
    max_,
    mean,
    median,
    min_,
    n_distinct,
    quantile,
    sd,
    sum_,
    var,
)
from tabula.charts.render import render, save_chart, to_altair
from tabula.charts.spec import Chart, Geometry, StyleKind, add_layer, add_style, new_chart
from tabula.crosstab import CrossTab, add_margins, crosstab
from tabula.datasets import available_datasets, load_bundled
from tabula.errors import (
    ChartOptionError,
    ColumnNotFoundError,
    ConflictError,
    DataIOError,
    DeserializationError,
    DuplicateKeyError,
    EvaluationError,
    MissingChannelError,
    NotFoundError,
    ParseError,
    TableShapeError,
    TabulaError,
)
from tabula.loader import (
    load_delimited,
    load_serialized,
    read_serialized,
    save_serialized,
    write_delimited,
)
from tabula.table import MISSING, ColumnType, Row, Table, is_missing
from tabula.transform import (
    GroupedTable,
    arrange,
    filter_rows,
    gather,
    group_by,
    mutate,
    select,
    spread,
    summarize,
    ungroup,
)

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "Aggregation",
    "Chart",
    "ChartOptionError",
    "ColumnNotFoundError",
    "ColumnType",
    "ConflictError",
    "CrossTab",
    "DataIOError",
    "DeserializationError",
    "DuplicateKeyError",
    "EvaluationError",
    "Geometry",
    "GroupedTable",
    "MissingChannelError",
    "NotFoundError",
    "ParseError",
    "Row",
    "StyleKind",
    "Table",
    "TableShapeError",
    "TabulaError",
    "add_layer",
    "add_margins",
    "add_style",
    "arrange",
    "available_datasets",
    "count",
    "crosstab",
    "describe",
    "filter_rows",
    "gather",
    "group_by",
    "is_missing",
    "load_bundled",
    "load_delimited",
    "load_serialized",
    "max_",
    "mean",
    "median",
    "min_",
    "mutate",
    "n_distinct",
    "new_chart",
    "quantile",
    "read_serialized",
    "render",
    "save_chart",
    "save_serialized",
    "sd",
    "select",
    "spread",
    "sum_",
    "summarize",
    "to_altair",
    "ungroup",
    "var",
    "write_delimited",
]
