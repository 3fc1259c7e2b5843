"""Shared fixtures for tabula unit tests."""

from unittest.mock import patch

import pytest

from tabula import Table


@pytest.fixture(scope="function", autouse=True)
def clear_patches():
    """Clear all mock patches between tests to prevent pollution."""
    yield
    patch.stopall()


@pytest.fixture
def grouped_table():
    """Six rows over three groups of unequal size (A x3, B x2, C x1)."""
    return Table(
        {
            "g": ["A", "B", "A", "C", "B", "A"],
            "v": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
        }
    )


@pytest.fixture
def measurements():
    """Small table with a missing numeric value."""
    return Table(
        {
            "species": ["x", "x", "y", "y"],
            "mass": [2.0, 4.0, None, 6.0],
        }
    )


@pytest.fixture
def long_table():
    """Long-format table that spreads into a 2 x 2 wide table."""
    return Table(
        {
            "id": ["a", "a", "b", "b"],
            "year": [2020.0, 2021.0, 2020.0, 2021.0],
            "value": [1.0, 2.0, 3.0, 4.0],
        }
    )
