"""Unit tests for table transforms."""

import math

import pytest

from tabula import (
    ColumnNotFoundError,
    ColumnType,
    ConflictError,
    DuplicateKeyError,
    EvaluationError,
    Table,
    arrange,
    count,
    filter_rows,
    gather,
    group_by,
    is_missing,
    mean,
    mutate,
    select,
    spread,
    sum_,
    summarize,
    ungroup,
)


def test_select_orders_columns(measurements):
    """Test select projects in the requested order."""
    result = select(measurements, ["mass", "species"])
    assert result.column_names == ["mass", "species"]
    assert result.n_rows == 4


def test_select_unknown_column(measurements):
    """Test selecting an unknown column fails."""
    with pytest.raises(ColumnNotFoundError):
        select(measurements, ["weight"])


def test_select_twice_is_conflict(measurements):
    """Test a column cannot be selected twice."""
    with pytest.raises(ConflictError):
        select(measurements, ["mass", "mass"])


def test_filter_drops_missing_predicates(measurements):
    """Test rows whose predicate is missing are dropped."""
    result = filter_rows(measurements, lambda r: None if is_missing(r["mass"]) else r["mass"] > 3)
    assert result.to_list("mass") == [4.0, 6.0]


def test_filter_predicate_failure(measurements):
    """Test a failing predicate raises EvaluationError."""
    with pytest.raises(EvaluationError, match="undefined column"):
        filter_rows(measurements, lambda r: r["weight"] > 3)


def test_arrange_missing_last(measurements):
    """Test sorting puts missing values last in both directions."""
    assert arrange(measurements, "mass").to_list("mass") == [2.0, 4.0, 6.0, None]
    assert arrange(measurements, "mass", descending=True).to_list("mass") == [
        6.0,
        4.0,
        2.0,
        None,
    ]


def test_arrange_is_stable():
    """Test ties keep their input order across multiple keys."""
    t = Table({"k": ["b", "a", "b", "a"], "n": [1.0, 2.0, 3.0, 4.0]})
    assert arrange(t, "k").to_list("n") == [2.0, 4.0, 1.0, 3.0]


def test_mutate_adds_and_replaces(measurements):
    """Test mutate appends a new column and replaces an existing one in place."""
    added = mutate(measurements, "double", lambda r: r["mass"] * 2)
    assert added.column_names == ["species", "mass", "double"]
    assert added.to_list("double") == [4.0, 8.0, None, 12.0]

    replaced = mutate(measurements, "mass", lambda r: r["mass"] + 1)
    assert replaced.column_names == ["species", "mass"]
    assert replaced.to_list("mass") == [3.0, 5.0, None, 7.0]


def test_mutate_undefined_column(measurements):
    """Test an expression reading an unknown column raises EvaluationError."""
    with pytest.raises(EvaluationError, match="undefined column"):
        mutate(measurements, "y", lambda r: r["weight"])


def test_mutate_requires_callable(measurements):
    """Test the expression must be callable."""
    with pytest.raises(EvaluationError):
        mutate(measurements, "y", 3)


def test_group_by_first_appearance_order(grouped_table):
    """Test groups come out in the order their keys first appear."""
    grouped = group_by(grouped_table, ["g"])
    assert [g.key for g in grouped.groups] == [("A",), ("B",), ("C",)]
    assert [len(g) for g in grouped.groups] == [3, 2, 1]
    assert ungroup(grouped) is grouped_table


def test_group_by_missing_keys_form_one_group():
    """Test missing key values group together."""
    t = Table({"g": [None, "a", None], "v": [1.0, 2.0, 3.0]})
    grouped = group_by(t, ["g"])
    assert [g.key for g in grouped.groups] == [(None,), ("a",)]
    keys = [key for key, _ in grouped]
    assert keys == [(None,), ("a",)]


def test_summarize_counts_per_group(grouped_table):
    """Test summarize emits one row per group in group order."""
    result = grouped_table.pipe(group_by, ["g"]).pipe(
        summarize, {"n": count(), "total": sum_("v")}
    )
    assert result.column_names == ["g", "n", "total"]
    assert result.to_list("g") == ["A", "B", "C"]
    assert result.to_list("n") == [3.0, 2.0, 1.0]
    assert result.to_list("total") == [10.0, 7.0, 4.0]
    assert result.dtype("g") is ColumnType.CATEGORICAL


def test_summarize_ungrouped_matches_empty_keys(grouped_table):
    """Test a plain table summarizes like a grouping with no keys."""
    aggregations = {"n": count(), "avg": mean("v")}
    plain = summarize(grouped_table, aggregations)
    empty = summarize(group_by(grouped_table, []), aggregations)
    assert plain == empty
    assert plain.to_list("avg") == [3.5]


def test_summarize_na_rm():
    """Test missing values poison the mean unless removed."""
    t = Table({"x": [2.0, 4.0, None, 6.0]})
    assert summarize(t, {"m": mean("x", na_rm=True)}).to_list("m") == [4.0]
    assert summarize(t, {"m": mean("x")}).to_list("m") == [None]


def test_summarize_key_conflict(grouped_table):
    """Test an output column may not repeat a key."""
    with pytest.raises(ConflictError):
        summarize(group_by(grouped_table, ["g"]), {"g": count()})


def test_summarize_categorical_mean(measurements):
    """Test numeric aggregations reject categorical columns."""
    with pytest.raises(EvaluationError, match="categorical"):
        summarize(measurements, {"m": mean("species")})


def test_summarize_parallel_keeps_group_order():
    """Test a thread pool gives the same ordered result as serial execution."""
    t = Table(
        {
            "g": [f"g{i % 7}" for i in range(70)],
            "v": [float(i) for i in range(70)],
        }
    )
    aggregations = {"n": count(), "avg": mean("v")}
    serial = summarize(group_by(t, ["g"]), aggregations)
    parallel = summarize(group_by(t, ["g"]), aggregations, max_workers=4)
    assert parallel == serial
    assert parallel.to_list("g") == [f"g{i}" for i in range(7)]


def test_spread_pivots_wide(long_table):
    """Test spread turns key values into columns."""
    wide = spread(long_table, "year", "value")
    assert wide.column_names == ["id", "2020", "2021"]
    assert wide.to_list("id") == ["a", "b"]
    assert wide.to_list("2020") == [1.0, 3.0]
    assert wide.to_list("2021") == [2.0, 4.0]


def test_spread_fills_absent_cells():
    """Test absent combinations get the fill value."""
    t = Table({"id": ["a", "b"], "k": ["x", "y"], "v": [1.0, 2.0]})
    wide = spread(t, "k", "v")
    assert wide.to_list("x") == [1.0, None]
    assert spread(t, "k", "v", fill=0).to_list("y") == [0.0, 2.0]


def test_spread_duplicate_cell():
    """Test two rows mapping to one cell is an error."""
    duplicated = Table(
        {
            "id": ["a", "a"],
            "year": [2020.0, 2020.0],
            "value": [1.0, 2.0],
        }
    )
    with pytest.raises(DuplicateKeyError):
        spread(duplicated, "year", "value")


def test_gather_is_inverse_of_spread(long_table):
    """Test gathering the spread columns restores the long rows."""
    wide = spread(long_table, "year", "value")
    long = gather(wide, "year", "value", ["2020", "2021"])
    assert long.column_names == ["id", "year", "value"]
    assert long.n_rows == 4
    rows = {(r["id"], r["year"]): float(r["value"]) for r in long.rows()}
    assert rows == {
        ("a", "2020"): 1.0,
        ("b", "2020"): 3.0,
        ("a", "2021"): 2.0,
        ("b", "2021"): 4.0,
    }
    assert long.dtype("value") is ColumnType.NUMERIC


def test_gather_column_major_order():
    """Test gathered rows come out column by column."""
    wide = Table({"id": ["a", "b"], "p": [1.0, 2.0], "q": [3.0, 4.0]})
    long = gather(wide, "key", "val", ["p", "q"])
    assert long.to_list("key") == ["p", "p", "q", "q"]
    assert long.to_list("id") == ["a", "b", "a", "b"]
    assert long.to_list("val") == [1.0, 2.0, 3.0, 4.0]


def test_gather_name_collision():
    """Test the output names may not repeat a kept column."""
    wide = Table({"id": ["a"], "p": [1.0]})
    with pytest.raises(ConflictError):
        gather(wide, "id", "val", ["p"])


def test_pipeline_composes(grouped_table):
    """Test a pipeline of transforms reads left to right."""
    result = (
        grouped_table.pipe(filter_rows, lambda r: r["v"] > 1)
        .pipe(mutate, "half", lambda r: r["v"] / 2)
        .pipe(group_by, ["g"])
        .pipe(summarize, {"m": mean("half")})
    )
    assert result.to_list("g") == ["B", "A", "C"]
    assert result.to_list("m") == pytest.approx([1.75, 2.25, 2.0])
    assert not any(math.isnan(v) for v in result.to_list("m"))


def test_spread_restores_gathered_table():
    """Test gathering wide columns and spreading them back reproduces the table."""
    wide = Table({"id": ["a", "b"], "p": [1.0, None], "q": [3.0, 4.0]})
    long = gather(wide, "k", "v", ["p", "q"])
    assert spread(long, "k", "v") == wide
