"""Coefficient containers for truncated Taylor series.

A univariate :class:`Series` with coefficients ``c`` represents

    f(x) = c[0] + c[1] (x - a) + c[2] (x - a) ^ 2 + ...

where ``c[i]`` is the i-th derivative of ``f`` at ``a`` divided by ``i!``.

A :class:`Series2D` does the same for two variables with a square grid of
coefficients ``c[x, y]`` next to ``(x - a) ^ x (y - b) ^ y``.

Both are plain buffers handed out by a :class:`taylorkit.pool.Pool`; the
algebra lives in :mod:`taylorkit.series.series` and
:mod:`taylorkit.series.series2d`.
"""

from __future__ import annotations

from typing import TypeAlias

import numpy as np

from taylorkit.utils.types import FloatArray

__all__ = [
    "Series",
    "Series2D",
    "SeriesOrNumber",
    "Series2DOrNumber",
]


class Series:
    """Coefficients of a univariate truncated Taylor series.

    Attributes:
        coefficients: Float array of length ``degree + 1``.
        is_free: Whether the object currently sits on a pool's free list.
        pool_generation: Shape generation of the pool that built it.
    """

    __slots__ = ("coefficients", "is_free", "pool_generation")

    def __init__(self, degree: int):
        self.coefficients: FloatArray = np.zeros(degree + 1, dtype=float)
        self.is_free = False
        self.pool_generation = 0

    @property
    def degree(self) -> int:
        """Highest retained derivative order."""
        return self.coefficients.size - 1

    def __len__(self) -> int:
        return self.coefficients.size

    def __repr__(self) -> str:
        return f"Series({self.coefficients.tolist()})"


class Series2D:
    """Coefficients of a bivariate truncated Taylor series.

    The grid is stored row after row with ``y`` selecting the row, so the
    grid

        1 2 3
        4 5 6
        7 8 9

    is stored as ``1 2 3 4 5 6 7 8 9`` and ``get(1, 0)`` is ``2``.

    Attributes:
        coefficients: Flat float array of length ``size * size``.
        size: Side length of the grid, ``degree + 1``.
        is_free: Whether the object currently sits on a pool's free list.
        pool_generation: Shape generation of the pool that built it.
    """

    __slots__ = ("coefficients", "size", "is_free", "pool_generation")

    def __init__(self, degree: int):
        self.size = degree + 1
        self.coefficients: FloatArray = np.zeros(self.size * self.size, dtype=float)
        self.is_free = False
        self.pool_generation = 0

    @property
    def degree(self) -> int:
        """Highest retained derivative order along each axis."""
        return self.size - 1

    @property
    def grid(self) -> FloatArray:
        """A ``(size, size)`` view of the coefficients indexed ``[y, x]``."""
        return self.coefficients.reshape(self.size, self.size)

    def get(self, x: int, y: int) -> float:
        return self.coefficients[y * self.size + x]

    def set(self, x: int, y: int, value: float) -> None:
        self.coefficients[y * self.size + x] = value

    def __len__(self) -> int:
        return self.coefficients.size

    def __repr__(self) -> str:
        return f"Series2D({self.grid.tolist()})"


SeriesOrNumber: TypeAlias = Series | float
Series2DOrNumber: TypeAlias = Series2D | float
