"""Unit tests for aggregation functions and describe."""

import math

import numpy as np
import pytest

from tabula import (
    Aggregation,
    EvaluationError,
    Table,
    describe,
    max_,
    median,
    min_,
    n_distinct,
    quantile,
    sd,
    sum_,
    summarize,
    var,
)
from tabula.aggregate import quantile_linear


def test_quantile_linear_interpolates():
    """Test quartiles of 1..10 by linear interpolation."""
    values = list(range(1, 11))
    assert quantile_linear(values, 0.25) == pytest.approx(3.25)
    assert quantile_linear(values, 0.5) == pytest.approx(5.5)
    assert quantile_linear(values, 0.75) == pytest.approx(7.75)
    assert quantile_linear(values, 0.0) == 1.0
    assert quantile_linear(values, 1.0) == 10.0


def test_quantile_linear_edge_cases():
    """Test empty input and out-of-range probabilities."""
    assert math.isnan(quantile_linear([], 0.5))
    with pytest.raises(EvaluationError):
        quantile_linear([1.0], 1.5)


def test_builtin_aggregations():
    """Test each numeric aggregation on a known sample."""
    t = Table({"x": [1.0, 2.0, 3.0, 4.0]})
    result = summarize(
        t,
        {
            "sum": sum_("x"),
            "median": median("x"),
            "min": min_("x"),
            "max": max_("x"),
            "var": var("x"),
            "sd": sd("x"),
            "q90": quantile("x", 0.9),
        },
    )
    record = result.to_records()[0]
    assert record["sum"] == 10.0
    assert record["median"] == 2.5
    assert record["min"] == 1.0
    assert record["max"] == 4.0
    assert record["var"] == pytest.approx(5 / 3)
    assert record["sd"] == pytest.approx(math.sqrt(5 / 3))
    assert record["q90"] == pytest.approx(3.7)


def test_sum_of_empty_group_is_zero():
    """Test sum over nothing is 0 while other reductions are missing."""
    t = Table({"x": [None, None]})
    record = summarize(t, {"s": sum_("x", na_rm=True), "m": max_("x", na_rm=True)})
    assert record.to_list("s") == [0.0]
    assert record.to_list("m") == [None]


def test_sd_needs_two_values():
    """Test the sample deviation of one value is missing."""
    t = Table({"x": [5.0]})
    assert summarize(t, {"s": sd("x")}).to_list("s") == [None]


def test_n_distinct_missing_handling():
    """Test missing counts as a distinct value unless removed."""
    t = Table({"s": ["a", "b", "a", None]})
    result = summarize(t, {"all": n_distinct("s"), "present": n_distinct("s", na_rm=True)})
    assert result.to_list("all") == [3.0]
    assert result.to_list("present") == [2.0]


def test_custom_callable_aggregation():
    """Test a callable receives the group's values."""
    t = Table({"x": [1.0, 2.0, None]})
    spread_of = Aggregation(lambda values: max(values) - min(values), "x", na_rm=True)
    assert summarize(t, {"range": spread_of}).to_list("range") == [1.0]


def test_custom_callable_failure():
    """Test a failing callable is reported as an evaluation error."""
    t = Table({"x": [1.0]})
    broken = Aggregation(lambda values: values[5], "x")
    with pytest.raises(EvaluationError, match="failed"):
        summarize(t, {"bad": broken})


def test_unknown_function():
    """Test unknown aggregation names are rejected before any work."""
    with pytest.raises(EvaluationError, match="Unknown"):
        summarize(Table({"x": [1.0]}), {"bad": Aggregation("mode", "x")})


def test_quantile_requires_probability():
    """Test quantile aggregation needs q."""
    with pytest.raises(EvaluationError, match="probability"):
        summarize(Table({"x": [1.0]}), {"q": Aggregation("quantile", "x")})


def test_describe_reports_every_column():
    """Test describe summarizes numeric and categorical columns."""
    t = Table({"x": [float(v) for v in range(1, 11)] + [None], "s": ["a"] * 10 + ["b"]})
    summary = describe(t)

    assert summary.to_list("column") == ["x", "s"]
    assert summary.to_list("type") == ["numeric", "categorical"]
    assert summary.to_list("n") == [11.0, 11.0]
    assert summary.to_list("n_missing") == [1.0, 0.0]
    assert summary.to_list("n_distinct") == [10.0, 2.0]

    x = summary.to_records()[0]
    assert x["q1"] == pytest.approx(3.25)
    assert x["median"] == pytest.approx(5.5)
    assert x["q3"] == pytest.approx(7.75)
    assert x["mean"] == pytest.approx(5.5)
    assert (x["min"], x["max"]) == (1.0, 10.0)
    assert np.isnan(summary.column("q1")[1])
