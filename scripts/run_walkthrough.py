#!/usr/bin/env python3
"""Replay the first-steps data analysis walkthrough.

Loads the bundled datasets, prints and summarizes them, builds the
scatterplot, histogram and boxplot charts and prints grouped summaries
and a cross-tab.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from tabula import (
    add_layer,
    add_margins,
    add_style,
    count,
    crosstab,
    describe,
    group_by,
    load_bundled,
    load_delimited,
    mean,
    mutate,
    new_chart,
    render,
    sd,
    select,
    summarize,
)

# Kilograms per unit of the mtcars wt column (1000 lb)
KG_PER_1000_LB = 453.59237


def build_charts(output_dir: Path, fmt: str) -> list[Path]:
    """Render the walkthrough charts for the iris data."""
    iris = load_bundled("iris")
    written = []

    scatter = new_chart()
    scatter = add_layer(
        scatter,
        "point",
        iris,
        {"x": "Sepal.Length", "y": "Sepal.Width", "color": "Species"},
    )
    scatter = add_layer(scatter, "abline", mapping={"slope": 0.0, "intercept": 3.0})
    scatter = add_style(scatter, "xlab", "Sepal length (cm)")
    scatter = add_style(scatter, "ylab", "Sepal width (cm)")
    scatter = add_style(scatter, "theme", "bw")
    path = output_dir / f"iris_scatter.{fmt}"
    render(scatter, path)
    written.append(path)

    histogram = add_layer(
        new_chart(),
        "histogram",
        iris,
        {"x": "Petal.Length", "fill": "Species"},
        bins=30,
        position="identity",
        alpha=0.5,
    )
    histogram = add_style(histogram, "title", "Petal length by species")
    path = output_dir / f"iris_histogram.{fmt}"
    render(histogram, path)
    written.append(path)

    boxplot = add_layer(
        new_chart(), "boxplot", iris, {"x": "Species", "y": "Sepal.Length", "fill": "Species"}
    )
    boxplot = add_style(boxplot, "theme", "minimal")
    path = output_dir / f"iris_boxplot.{fmt}"
    render(boxplot, path)
    written.append(path)
    return written


def main() -> None:
    """Run the walkthrough."""
    parser = argparse.ArgumentParser(
        description="Replay the first-steps data analysis walkthrough",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("walkthrough"),
        help="Directory for rendered charts (default: walkthrough)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "html", "png", "svg", "pdf"],
        default="json",
        help="Chart format (default: json, Vega-Lite spec)",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Optional delimited file to load and describe as well",
    )
    parser.add_argument(
        "--no-render",
        action="store_true",
        help="Skip chart rendering",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    iris = load_bundled("iris")
    print(iris.head())
    print()
    print(describe(iris).to_string(max_rows=iris.n_cols))
    print()

    species_summary = iris.pipe(group_by, ["Species"]).pipe(
        summarize,
        {
            "n": count(),
            "mean_length": mean("Sepal.Length"),
            "sd_length": sd("Sepal.Length"),
        },
    )
    print(species_summary)
    print()

    mtcars = load_bundled("mtcars")
    weights = mtcars.pipe(mutate, "wt_kg", lambda r: r["wt"] * KG_PER_1000_LB).pipe(
        select, ["model", "wt", "wt_kg"]
    )
    print(weights.head())
    print()
    print(add_margins(crosstab(mtcars.column("cyl"), mtcars.column("gear"), ("cyl", "gear"))))
    print()

    if args.csv is not None:
        table = load_delimited(args.csv)
        print(table)
        print(describe(table).to_string(max_rows=table.n_cols))
        print()

    if not args.no_render:
        for path in build_charts(args.output_dir, args.format):
            print(f"  Rendered: {path}")


if __name__ == "__main__":
    main()
