"""Validation utilities for taylorkit."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np

__all__ = [
    "validate_degree",
    "validate_variable_names",
    "check_same_length",
]

_IDENTIFIER_RE = re.compile(r"[a-zA-Z]+")


def validate_degree(degree: Any) -> int:
    """Validates the number of derivatives to compute.

    Args:
        degree: Candidate degree. Integral floats such as ``3.0`` are accepted.

    Returns:
        The degree as a Python ``int``.

    Raises:
        TypeError: If ``degree`` is not an integer.
        ValueError: If ``degree`` is negative.
    """
    if isinstance(degree, (bool, np.bool_)):
        raise TypeError("degree must be an integer, not a bool.")
    if isinstance(degree, (float, np.floating)):
        if not float(degree).is_integer():
            raise TypeError(f"degree must be an integer; got {degree!r}.")
        degree = int(degree)
    if not isinstance(degree, (int, np.integer)):
        raise TypeError(f"degree must be an integer; got {type(degree).__name__}.")
    degree = int(degree)
    if degree < 0:
        raise ValueError(f"degree must be non-negative; got {degree}.")
    return degree


def validate_variable_names(
    names: str | Sequence[str],
    *,
    reserved: Iterable[str] = (),
) -> tuple[str, ...]:
    """Validates the independent variable names of an expression.

    Requirements:
      - one or two names;
      - each name is a non-empty run of ASCII letters (the tokenizer's
        identifier alphabet);
      - names are distinct and none of them is a reserved function name.

    Args:
        names: A single name or a sequence of names.
        reserved: Names that cannot be used as variables (function names).

    Returns:
        The names as a tuple.

    Raises:
        ValueError: If any requirement is violated.
    """
    if isinstance(names, str):
        names = (names,)
    names = tuple(names)

    if len(names) not in (1, 2):
        raise ValueError(f"Expected one or two variable names; got {len(names)}.")
    reserved = set(reserved)
    for name in names:
        if not isinstance(name, str) or _IDENTIFIER_RE.fullmatch(name) is None:
            raise ValueError(f"Variable names must consist of letters only; got {name!r}.")
        if name in reserved:
            raise ValueError(f"'{name}' is a function name and cannot be used as a variable.")
    if len(set(names)) != len(names):
        raise ValueError(f"Variable names must be distinct; got {names}.")
    return names


def check_same_length(*arrays: np.ndarray) -> None:
    """Checks that all coefficient arrays have the same length.

    Series of different lengths can only meet if the degree was changed in
    the middle of a computation; this is an internal error, not bad input.

    Args:
        *arrays: Coefficient arrays to compare.

    Raises:
        ValueError: If the lengths differ.
    """
    sizes = {a.size for a in arrays}
    if len(sizes) > 1:
        raise ValueError(f"Series are of different lengths: {sorted(sizes)}.")
