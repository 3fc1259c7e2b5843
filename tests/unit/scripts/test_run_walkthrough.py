"""Unit tests for the walkthrough script."""

import sys
from unittest.mock import patch

from scripts.run_walkthrough import build_charts, main


def test_build_charts_writes_specs(tmp_path):
    """Test the three walkthrough charts are written as Vega-Lite specs."""
    written = build_charts(tmp_path, "json")

    assert [p.name for p in written] == [
        "iris_scatter.json",
        "iris_histogram.json",
        "iris_boxplot.json",
    ]
    assert all(p.exists() for p in written)


def test_main_prints_summaries(capsys):
    """Test the walkthrough prints the tables without rendering."""
    with patch.object(sys, "argv", ["run_walkthrough.py", "--no-render"]):
        main()

    out = capsys.readouterr().out
    assert "# A table: 6 x 5" in out
    assert "mean_length" in out
    assert "wt_kg" in out
    assert "Sum" in out


def test_main_describes_extra_csv(tmp_path, capsys):
    """Test a user-supplied file is loaded and described."""
    path = tmp_path / "extra.csv"
    path.write_text("x,y\n1,a\n2,b\n")

    with patch.object(sys, "argv", ["run_walkthrough.py", "--no-render", "--csv", str(path)]):
        main()

    assert "# A table: 2 x 2" in capsys.readouterr().out
