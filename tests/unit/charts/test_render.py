"""Unit tests for chart rendering."""

import json
from unittest.mock import patch

import altair as alt
import pytest

from tabula import (
    ChartOptionError,
    DataIOError,
    add_layer,
    add_style,
    load_bundled,
    new_chart,
    render,
    save_chart,
    to_altair,
)
from tabula.charts.render import THEME_CONFIGS


@pytest.fixture
def scatter():
    """Scatterplot of iris sepals coloured by species, with a reference line."""
    iris = load_bundled("iris")
    chart = add_layer(
        new_chart(), "point", iris, {"x": "Sepal.Length", "y": "Sepal.Width", "color": "Species"}
    )
    return add_layer(chart, "abline", mapping={"slope": 0.0, "intercept": 3.0})


def test_to_altair_layers_and_size(scatter):
    """Test the compiled chart has one layer per data layer and pixel size."""
    compiled = to_altair(scatter)
    assert isinstance(compiled, alt.LayerChart)
    spec = compiled.to_dict()
    assert len(spec["layer"]) == 2
    assert spec["width"] == 480
    assert spec["height"] == 336


def test_axis_titles_from_columns_and_labels(scatter):
    """Test axes are titled by the mapped columns unless labels are set."""
    spec = to_altair(scatter).to_dict()
    encoding = spec["layer"][0]["encoding"]
    assert encoding["x"]["title"] == "Sepal.Length"
    assert encoding["x"]["field"] == "Sepal\\.Length"

    labelled = add_style(scatter, "xlab", "Sepal length (cm)")
    encoding = to_altair(labelled).to_dict()["layer"][0]["encoding"]
    assert encoding["x"]["title"] == "Sepal length (cm)"


def test_theme_and_title_applied(scatter):
    """Test theme configuration and the chart title reach the spec."""
    chart = add_style(add_style(scatter, "theme", "bw"), "title", "Sepals")
    spec = to_altair(chart).to_dict()
    assert spec["title"] == "Sepals"
    assert spec["config"]["view"]["fill"] == THEME_CONFIGS["bw"]["view"]["fill"]


def test_colour_scale_follows_sorted_groups(scatter):
    """Test species are coloured in sorted label order."""
    encoding = to_altair(scatter).to_dict()["layer"][0]["encoding"]
    assert encoding["color"]["scale"]["domain"] == ["setosa", "versicolor", "virginica"]


def test_histogram_and_boxplot_compile():
    """Test the statistical layers compile to Vega-Lite."""
    iris = load_bundled("iris")
    histogram = add_layer(
        new_chart(), "histogram", iris, {"x": "Petal.Length", "fill": "Species"}, bins=10
    )
    spec = to_altair(histogram).to_dict()
    assert spec["layer"][0]["mark"]["type"] == "bar"
    assert spec["layer"][0]["encoding"]["y"]["title"] == "count"

    boxplot = add_layer(new_chart(), "boxplot", iris, {"x": "Species", "y": "Sepal.Length"})
    assert "layer" in to_altair(boxplot).to_dict()["layer"][0]


def test_render_writes_json(tmp_path, scatter):
    """Test rendering to a .json path writes the Vega-Lite spec."""
    path = tmp_path / "charts" / "scatter.json"
    render(scatter, path)
    spec = json.loads(path.read_text())
    assert "layer" in spec


def test_render_without_path_does_not_save(scatter):
    """Test rendering without a path only compiles."""
    with patch("tabula.charts.render.save_chart") as mock_save:
        render(scatter)
    assert not mock_save.called


def test_png_uses_scale_factor(tmp_path, scatter):
    """Test PNG export passes the configured scale factor."""
    compiled = to_altair(scatter)
    with patch.object(alt.LayerChart, "save") as mock_save:
        save_chart(compiled, tmp_path / "scatter.png")
    assert mock_save.call_args.kwargs["scale_factor"] == 3.0


def test_unsupported_format(tmp_path, scatter):
    """Test unknown suffixes are rejected before writing."""
    with pytest.raises(ChartOptionError, match="Unsupported"):
        render(scatter, tmp_path / "scatter.bmp")
    assert not (tmp_path / "scatter.bmp").exists()


def test_unwritable_destination(tmp_path, scatter):
    """Test write failures surface as DataIOError."""
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(DataIOError):
        render(scatter, blocker / "scatter.json")


def test_point_alpha_zero_is_kept():
    """Test an explicit zero opacity is not replaced by the default."""
    iris = load_bundled("iris")
    chart = add_layer(
        new_chart(), "point", iris, {"x": "Sepal.Length", "y": "Sepal.Width"}, alpha=0.0
    )
    spec = to_altair(chart).to_dict()
    assert spec["layer"][0]["mark"]["opacity"] == 0.0
