"""Tests for taylorkit.utils.validate."""

import numpy as np
import pytest

from taylorkit.utils.validate import (
    check_same_length,
    validate_degree,
    validate_variable_names,
)


@pytest.mark.parametrize("degree, expected", [(0, 0), (3, 3), (np.int64(4), 4), (2.0, 2)])
def test_validate_degree_accepts_integers(degree, expected):
    """Tests that integral degrees are accepted and converted to int."""
    out = validate_degree(degree)
    assert out == expected
    assert type(out) is int


@pytest.mark.parametrize("degree", [True, 2.5, "3", None])
def test_validate_degree_type_errors(degree):
    """Tests that non-integer degrees raise TypeError."""
    with pytest.raises(TypeError):
        validate_degree(degree)


def test_validate_degree_negative():
    """Tests that negative degrees raise ValueError."""
    with pytest.raises(ValueError):
        validate_degree(-1)


@pytest.mark.parametrize(
    "names, expected",
    [
        ("x", ("x",)),
        (["t"], ("t",)),
        (("x", "y"), ("x", "y")),
        (("alpha", "Beta"), ("alpha", "Beta")),
    ],
)
def test_validate_variable_names_ok(names, expected):
    """Tests that one or two letter-only names are accepted."""
    assert validate_variable_names(names) == expected


@pytest.mark.parametrize(
    "names",
    [
        (),
        ("x", "y", "z"),
        ("x", "x"),
        ("",),
        ("x1",),
        ("x_y",),
        (3,),
    ],
)
def test_validate_variable_names_rejects(names):
    """Tests that invalid name lists raise ValueError."""
    with pytest.raises(ValueError):
        validate_variable_names(names)


def test_validate_variable_names_reserved():
    """Tests that reserved names are rejected."""
    with pytest.raises(ValueError, match="function name"):
        validate_variable_names(("x", "exp"), reserved=("exp", "sin"))


def test_check_same_length():
    """Tests that arrays of different sizes are rejected."""
    check_same_length(np.zeros(3), np.ones(3), np.zeros(3))
    check_same_length()
    with pytest.raises(ValueError, match="different lengths"):
        check_same_length(np.zeros(3), np.zeros(4))
