"""Truncated Taylor series containers and their algebra.

The kernels live in :mod:`taylorkit.series.series` (one variable) and
:mod:`taylorkit.series.series2d` (two variables) and are imported from
there directly.
"""

from taylorkit.series.containers import Series, Series2D

__all__ = [
    "Series",
    "Series2D",
    "SUPPORTED_FUNCTIONS",
]

#: Function names understood by the expression language and both kernels.
SUPPORTED_FUNCTIONS = (
    "sqrt",
    "exp",
    "ln",
    "log",
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
)
