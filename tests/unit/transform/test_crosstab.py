"""Unit tests for cross-tabs and margins."""

import pytest

from tabula import ConflictError, NotFoundError, add_margins, crosstab, load_bundled


@pytest.fixture
def two_way():
    """Cross-tab of four observations with one empty cell."""
    return crosstab(["x", "x", "y", "x"], ["p", "q", "q", "p"], names=("first", "second"))


def test_two_way_counts(two_way):
    """Test every category pair is counted, zero cells included."""
    assert two_way.labels == (("x", "y"), ("p", "q"))
    assert two_way.count("x", "p") == 2
    assert two_way.count("x", "q") == 1
    assert two_way.count("y", "q") == 1
    assert two_way.count("y", "p") == 0


def test_one_way_counts():
    """Test a single variable gives a frequency table."""
    table = crosstab([3, 1, 3, None])
    assert table.ndim == 1
    assert table.names == ("a",)
    assert table.labels == ((1.0, 3.0),)
    assert table.count(3) == 2


def test_unknown_label(two_way):
    """Test looking up an absent category fails."""
    with pytest.raises(NotFoundError):
        two_way.count("z", "p")


def test_length_mismatch():
    """Test the two variables must have the same length."""
    with pytest.raises(ValueError, match="differ in length"):
        crosstab(["a", "b"], ["c"])


def test_margins_totals(two_way):
    """Test margins add row, column and grand totals."""
    margins = add_margins(two_way)
    assert margins.labels == (("x", "y", "Sum"), ("p", "q", "Sum"))
    assert margins.count("x", "Sum") == 3
    assert margins.count("y", "Sum") == 1
    assert margins.count("Sum", "p") == 2
    assert margins.count("Sum", "q") == 2
    assert margins.count("Sum", "Sum") == 4


def test_one_way_margin():
    """Test a one-way table gains a total entry."""
    margins = add_margins(crosstab(["a", "b", "a"]), label="Total")
    assert margins.count("Total") == 3


def test_margin_label_conflict():
    """Test the margin label may not equal a real category."""
    with pytest.raises(ConflictError):
        add_margins(crosstab(["Sum", "x"], ["p", "q"]))


def test_mtcars_cylinders_by_gears():
    """Test the cylinder by gear table of the bundled cars."""
    mtcars = load_bundled("mtcars")
    table = add_margins(crosstab(mtcars.column("cyl"), mtcars.column("gear"), ("cyl", "gear")))
    assert table.count(4, 4) == 8
    assert table.count(8, 4) == 0
    assert table.count(8, 3) == 12
    assert [table.count(c, "Sum") for c in (4, 6, 8)] == [11, 7, 14]
    assert [table.count("Sum", g) for g in (3, 4, 5)] == [15, 12, 5]
    assert table.count("Sum", "Sum") == 32


def test_to_table_and_printing(two_way):
    """Test conversion to a table and the printed layout."""
    table = two_way.to_table()
    assert table.column_names == ["first", "p", "q"]
    assert table.to_list("p") == [2.0, 0.0]

    text = str(add_margins(two_way))
    lines = text.splitlines()
    assert lines[0].strip() == "second"
    assert lines[1].split() == ["first", "p", "q", "Sum"]
    assert lines[-1].split() == ["Sum", "2", "2", "4"]
