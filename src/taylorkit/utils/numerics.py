"""Numerical utilities."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache, wraps
from typing import Any, TypeVar

import numpy as np
from scipy.special import factorial

from taylorkit.utils.types import FloatArray

__all__ = [
    "factorials",
    "is_number",
    "ieee_semantics",
]

T = TypeVar("T")


@lru_cache(maxsize=32)
def factorials(n: int) -> FloatArray:
    """Returns the table ``[0!, 1!, ..., n!]`` as floats.

    The table is cached per ``n`` and marked read-only, so callers must not
    modify it in place. Entries beyond ``170!`` overflow to ``inf``, which is
    the same behaviour as multiplying out the factorial in double precision.

    Args:
        n: Largest factorial to include (non-negative).

    Returns:
        A 1D float array of length ``n + 1``.

    Raises:
        ValueError: If ``n`` is negative.
    """
    if n < 0:
        raise ValueError(f"factorials: n must be non-negative; got {n}.")
    table = np.asarray(factorial(np.arange(n + 1), exact=False), dtype=float)
    table.setflags(write=False)
    return table


def is_number(value: Any) -> bool:
    """Checks whether ``value`` is a real scalar usable as a constant operand.

    Booleans are rejected on purpose: ``True + x`` is almost always a bug in
    the caller rather than an intended constant.

    Args:
        value: Object to inspect.

    Returns:
        True for Python and NumPy real scalars, otherwise False.
    """
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def ieee_semantics(fn: Callable[..., T]) -> Callable[..., T]:
    """Runs ``fn`` with NumPy floating point warnings silenced.

    Division by zero, overflow and invalid operations then quietly produce
    ``inf`` and ``nan`` as IEEE-754 prescribes. A fresh ``np.errstate`` is
    entered on every call so that decorated functions may call each other.
    """
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any) -> T:
        """Wrapped function call."""
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            return fn(*args, **kwargs)

    return wrapped
