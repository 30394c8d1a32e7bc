"""Algebra on bivariate truncated Taylor series.

The two-variable counterpart of :mod:`taylorkit.series.series`. A
:class:`Series2D` holds the coefficients ``c[x, y]`` next to
``(x - a) ^ x (y - b) ^ y``; evaluating an expression on
:func:`x_evaluated_at_point` and :func:`y_evaluated_at_point` gives every
mixed partial derivative up to the degree along each axis.

The recurrences come from R. D. Neidinger, *Efficient recurrence relations
for univariate and multivariate Taylor series coefficients*, Discrete and
Continuous Dynamical Systems, 2013. Each elementary function is computed
cell by cell, ``y`` in the outer loop and ``x`` in the inner loop, with
cell ``(0, 0)`` evaluated directly and every other cell obtained from
:func:`d_convolve` over the cells already known. That scan order is what
makes the recurrences well defined, so it must not be changed.

Examples:
    >>> from taylorkit.context import AutodiffContext
    >>> from taylorkit.series import series2d as s2
    >>> ctx = AutodiffContext(degree=1)
    >>> x = s2.x_evaluated_at_point(3.0, context=ctx)
    >>> y = s2.y_evaluated_at_point(2.0, context=ctx)
    >>> s2.to_derivatives(s2.multiply(x, y, context=ctx)).tolist()
    [6.0, 2.0, 3.0, 1.0]
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from scipy.signal import convolve2d

from taylorkit.context import AutodiffContext, resolve_context
from taylorkit.pool import Pool
from taylorkit.series.containers import Series2D, Series2DOrNumber
from taylorkit.utils.domain import warn_domain
from taylorkit.utils.numerics import factorials, ieee_semantics, is_number
from taylorkit.utils.types import FloatArray
from taylorkit.utils.validate import check_same_length

__all__ = [
    "constant_value",
    "x_evaluated_at_point",
    "y_evaluated_at_point",
    "to_derivatives",
    "convolve",
    "d_convolve",
    "add",
    "negative",
    "subtract",
    "multiply",
    "divide",
    "sqrt",
    "exp",
    "ln",
    "log",
    "pow",
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
]


def _pool(context: AutodiffContext | None) -> Pool[Series2D]:
    return resolve_context(context).series2d_pool


def _allocate(pool: Pool[Series2D], *operands: Series2D) -> Series2D:
    """Allocates a result series and checks it matches the operands."""
    res = pool.allocate()
    try:
        check_same_length(res.coefficients, *(op.coefficients for op in operands))
    except ValueError:
        pool.mark_free(res)
        raise
    return res


def _unhandled(name: str, *operands: object) -> TypeError:
    kinds = ", ".join(type(op).__name__ for op in operands)
    return TypeError(f"Unhandled operand types in {name}: ({kinds}).")


def _cells(size: int) -> Iterator[tuple[int, int]]:
    """Yields every ``(x, y)`` but ``(0, 0)``, ``y`` outer and ``x`` inner."""
    for y in range(size):
        for x in range(size):
            if x or y:
                yield x, y


def constant_value(value: float, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns the series of a constant."""
    res = _pool(context).allocate()
    res.set(0, 0, value)
    return res


def x_evaluated_at_point(value: float, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns the series of the first variable at ``value``."""
    res = _pool(context).allocate()
    res.set(0, 0, value)
    if res.size > 1:
        res.set(1, 0, 1.0)
    return res


def y_evaluated_at_point(value: float, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns the series of the second variable at ``value``."""
    res = _pool(context).allocate()
    res.set(0, 0, value)
    if res.size > 1:
        res.set(0, 1, 1.0)
    return res


def to_derivatives(s: Series2DOrNumber, *, context: AutodiffContext | None = None) -> FloatArray:
    """Converts a series to the flat vector of its partial derivatives.

    Args:
        s: A series, or a number (treated as a constant of the context's degree).
        context: Context used when ``s`` is a number.

    Returns:
        Array in storage order: entry ``y * size + x`` holds the derivative
        taken ``x`` times along the first variable and ``y`` times along
        the second, i.e. ``c[x, y] x! y!``.
    """
    if is_number(s):
        size = resolve_context(context).degree + 1
        out = np.zeros(size * size, dtype=float)
        out[0] = s
        return out
    if isinstance(s, Series2D):
        fact = factorials(s.degree)
        return (s.grid * np.outer(fact, fact)).ravel()
    raise _unhandled("to_derivatives", s)


def convolve(a: Series2D, b: Series2D, w: int, h: int) -> float:
    """Convolves two series over the ``w`` by ``h`` box at the origin.

    Computes ``sum_{x < w, y < h} a(x, y) b(w - 1 - x, h - 1 - y)``, which is
    the coefficient next to ``x^(w-1) y^(h-1)`` in the product ``a b``.

    Args:
        a: First series.
        b: Second series (same size as ``a``).
        w: Width of the box along ``x``.
        h: Height of the box along ``y``.

    Returns:
        The sum of products.

    Raises:
        ValueError: If the sizes differ or the box does not fit in the grid.
    """
    check_same_length(a.coefficients, b.coefficients)
    if not (1 <= w <= a.size and 1 <= h <= a.size):
        raise ValueError(f"Box {w}x{h} does not fit in a grid of size {a.size}.")
    ga = a.grid[:h, :w]
    gb = b.grid[:h, :w][::-1, ::-1]
    return np.sum(ga * gb)


def d_convolve(a: Series2D, b: Series2D, k_x: int, k_y: int) -> float:
    """Convolves the derivative of ``a`` with ``b`` along one axis.

    The axis ``p`` is the one with the smallest non-zero index; when both
    are non-zero and equal the ``x`` axis wins. The result is

        (1 / k_p) * sum j_p a(j) b(k - j)

    over every ``j = (x, y)`` with ``0 <= x <= k_x``, ``0 <= y <= k_y`` and
    ``j != k``. Terms with ``j_p = 0`` vanish and are skipped.

    Args:
        a: Series whose derivative is taken.
        b: Second series (same size as ``a``).
        k_x: Target index along ``x``.
        k_y: Target index along ``y``.

    Returns:
        The weighted sum.

    Raises:
        ValueError: If both indices are zero, an index is out of range or
            the sizes differ.
    """
    check_same_length(a.coefficients, b.coefficients)
    if k_x == 0 and k_y == 0:
        raise ValueError("d_convolve called with k_x == 0 and k_y == 0.")
    if not (0 <= k_x < a.size and 0 <= k_y < a.size):
        raise ValueError(f"Index ({k_x}, {k_y}) is out of range for a grid of size {a.size}.")

    ga, gb = a.grid, b.grid
    along_x = k_y == 0 or (k_x != 0 and k_x <= k_y)
    if along_x:
        terms = ga[: k_y + 1, 1 : k_x + 1] * gb[: k_y + 1, :k_x][::-1, ::-1]
        terms = terms * np.arange(1, k_x + 1)
        terms[k_y, k_x - 1] = 0.0
        return np.sum(terms) / k_x

    terms = ga[1 : k_y + 1, : k_x + 1] * gb[:k_y, : k_x + 1][::-1, ::-1]
    terms = terms * np.arange(1, k_y + 1)[:, np.newaxis]
    terms[k_y - 1, k_x] = 0.0
    return np.sum(terms) / k_y


@ieee_semantics
def add(a: Series2DOrNumber, b: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``a + b``."""
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) + np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series2D):
        a, b = b, a
    if isinstance(a, Series2D) and is_number(b):
        res = _allocate(pool, a)
        res.coefficients[:] = a.coefficients
        res.coefficients[0] += b
        return res
    if isinstance(a, Series2D) and isinstance(b, Series2D):
        res = _allocate(pool, a, b)
        np.add(a.coefficients, b.coefficients, out=res.coefficients)
        return res
    raise _unhandled("add", a, b)


@ieee_semantics
def negative(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``-a``."""
    if is_number(a):
        return constant_value(-np.float64(a), context=context)
    if isinstance(a, Series2D):
        res = _allocate(_pool(context), a)
        np.negative(a.coefficients, out=res.coefficients)
        return res
    raise _unhandled("negative", a)


@ieee_semantics
def subtract(a: Series2DOrNumber, b: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``a - b``."""
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) - np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series2D):
        res = _allocate(pool, b)
        np.negative(b.coefficients, out=res.coefficients)
        res.coefficients[0] += a
        return res
    if isinstance(a, Series2D) and is_number(b):
        res = _allocate(pool, a)
        res.coefficients[:] = a.coefficients
        res.coefficients[0] -= b
        return res
    if isinstance(a, Series2D) and isinstance(b, Series2D):
        res = _allocate(pool, a, b)
        np.subtract(a.coefficients, b.coefficients, out=res.coefficients)
        return res
    raise _unhandled("subtract", a, b)


@ieee_semantics
def multiply(a: Series2DOrNumber, b: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``a * b``.

    The coefficient ``h[i, j]`` gathers every product of the terms
    ``x^p y^q`` of ``a`` and ``x^r y^s`` of ``b`` with ``p + r = i`` and
    ``q + s = j``: the full 2D Cauchy product, truncated to the grid.
    """
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) * np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series2D):
        a, b = b, a
    if isinstance(a, Series2D) and is_number(b):
        res = _allocate(pool, a)
        np.multiply(a.coefficients, b, out=res.coefficients)
        return res
    if isinstance(a, Series2D) and isinstance(b, Series2D):
        res = _allocate(pool, a, b)
        size = res.size
        res.grid[:, :] = convolve2d(a.grid, b.grid)[:size, :size]
        return res
    raise _unhandled("multiply", a, b)


@ieee_semantics
def divide(a: Series2DOrNumber, b: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``a / b``.

    Popping the ``h[i, j] b[0, 0]`` term off ``a[i, j] = convolve(h, b, i+1, j+1)``
    gives each coefficient from the ones before it in the scan.
    """
    pool = _pool(context)
    if is_number(a) and is_number(b):
        if b == 0:
            warn_domain("divide called with a zero divisor.")
        return constant_value(np.float64(a) / np.float64(b), context=context)
    if isinstance(a, Series2D) and is_number(b):
        if b == 0:
            warn_domain("divide called with a zero divisor.")
        res = _allocate(pool, a)
        np.divide(a.coefficients, np.float64(b), out=res.coefficients)
        return res
    if is_number(a) and isinstance(b, Series2D):
        numerator = _allocate(pool, b)
        numerator.set(0, 0, a)
        res = divide(numerator, b, context=context)
        pool.mark_free(numerator)
        return res
    if isinstance(a, Series2D) and isinstance(b, Series2D):
        b00 = b.get(0, 0)
        if b00 == 0:
            warn_domain("divide called with a series whose first coefficient is zero.")
        h = _allocate(pool, a, b)
        h.set(0, 0, a.get(0, 0) / b00)
        for x, y in _cells(h.size):
            # h[x, y] is still zero, so the box sum leaves it out.
            total = convolve(h, b, x + 1, y + 1)
            h.set(x, y, (a.get(x, y) - total) / b00)
        return h
    raise _unhandled("divide", a, b)


@ieee_semantics
def sqrt(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``sqrt(a)``."""
    if is_number(a):
        return constant_value(np.sqrt(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        h = _allocate(_pool(context), a)
        h.set(0, 0, np.sqrt(a.get(0, 0)))
        h00 = h.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, (a.get(x, y) - 2 * d_convolve(h, h, x, y)) / (2 * h00))
        return h
    raise _unhandled("sqrt", a)


@ieee_semantics
def exp(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``exp(a)``."""
    if is_number(a):
        return constant_value(np.exp(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        h = _allocate(_pool(context), a)
        h.set(0, 0, np.exp(a.get(0, 0)))
        h00 = h.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, h00 * a.get(x, y) + d_convolve(a, h, x, y))
        return h
    raise _unhandled("exp", a)


@ieee_semantics
def ln(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns the natural logarithm of ``a``.

    A non-positive argument (or ``a[0, 0]``) emits a
    :class:`~taylorkit.utils.domain.DomainWarning`.
    """
    if is_number(a):
        if a <= 0:
            warn_domain(f"ln called with a non-positive number ({a}).")
        return constant_value(np.log(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        a00 = a.get(0, 0)
        if a00 <= 0:
            warn_domain(f"ln called with a series whose first coefficient is non-positive ({a00}).")
        h = _allocate(_pool(context), a)
        h.set(0, 0, np.log(a00))
        for x, y in _cells(h.size):
            h.set(x, y, (a.get(x, y) - d_convolve(h, a, x, y)) / a00)
        return h
    raise _unhandled("ln", a)


log = ln


def _is_negative(a: Series2DOrNumber) -> bool:
    if is_number(a):
        return a < 0
    if isinstance(a, Series2D):
        return a.get(0, 0) < 0
    raise _unhandled("pow", a)


def _integer_power(a: Series2DOrNumber, n: int, context: AutodiffContext | None) -> Series2D:
    """Computes ``a ** n`` for an integer ``n`` by binary exponentiation."""
    if is_number(a):
        return constant_value(np.float64(a) ** n, context=context)

    pool = _pool(context)
    if n < 0:
        positive = _integer_power(a, -n, context)
        res = divide(1.0, positive, context=context)
        pool.mark_free(positive)
        return res

    result = constant_value(1.0, context=context)
    base, owns_base = a, False
    while n:
        if n & 1:
            product = multiply(result, base, context=context)
            pool.mark_free(result)
            result = product
        n >>= 1
        if n:
            squared = multiply(base, base, context=context)
            if owns_base:
                pool.mark_free(base)
            base, owns_base = squared, True
    if owns_base:
        pool.mark_free(base)
    return result


@ieee_semantics
def pow(a: Series2DOrNumber, b: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``a ** b``.

    A negative ``a`` (or ``a[0, 0]``) gives a series filled with ``nan``,
    whatever the exponent. Otherwise integer scalar exponents use repeated
    multiplication and everything else ``exp(b ln(a))``.
    """
    if not (is_number(a) or isinstance(a, Series2D)) or not (is_number(b) or isinstance(b, Series2D)):
        raise _unhandled("pow", a, b)

    pool = _pool(context)
    if _is_negative(a):
        res = pool.allocate()
        res.coefficients.fill(np.nan)
        return res

    if is_number(b) and float(b).is_integer():
        return _integer_power(a, int(b), context)

    log_a = ln(a, context=context)
    exponent = multiply(b, log_a, context=context)
    res = exp(exponent, context=context)
    pool.mark_free(log_a)
    pool.mark_free(exponent)
    return res


def _sin_and_cos(a: Series2DOrNumber, context: AutodiffContext | None) -> tuple[Series2D, Series2D]:
    if is_number(a):
        a = np.float64(a)
        return (
            constant_value(np.sin(a), context=context),
            constant_value(np.cos(a), context=context),
        )
    if isinstance(a, Series2D):
        pool = _pool(context)
        s = _allocate(pool, a)
        c = _allocate(pool, a)
        a00 = a.get(0, 0)
        s.set(0, 0, np.sin(a00))
        c.set(0, 0, np.cos(a00))
        s00, c00 = s.get(0, 0), c.get(0, 0)
        for x, y in _cells(s.size):
            s.set(x, y, c00 * a.get(x, y) + d_convolve(a, c, x, y))
            c.set(x, y, -s00 * a.get(x, y) - d_convolve(a, s, x, y))
        return s, c
    raise _unhandled("sin", a)


@ieee_semantics
def sin(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``sin(a)``."""
    s, c = _sin_and_cos(a, context)
    _pool(context).mark_free(c)
    return s


@ieee_semantics
def cos(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``cos(a)``."""
    s, c = _sin_and_cos(a, context)
    _pool(context).mark_free(s)
    return c


@ieee_semantics
def tan(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``tan(a)``, computed alongside ``b = 1 / cos(a)^2``."""
    if is_number(a):
        return constant_value(np.tan(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        pool = _pool(context)
        h = _allocate(pool, a)
        b = _allocate(pool, a)
        a00 = a.get(0, 0)
        h.set(0, 0, np.tan(a00))
        b.set(0, 0, 1 / (np.cos(a00) * np.cos(a00)))
        h00, b00 = h.get(0, 0), b.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, b00 * a.get(x, y) + d_convolve(a, b, x, y))
            b.set(x, y, 2 * (h00 * h.get(x, y) + d_convolve(h, h, x, y)))
        pool.mark_free(b)
        return h
    raise _unhandled("tan", a)


def _check_unit_interval(name: str, value: float) -> None:
    if abs(value) >= 1:
        warn_domain(f"{name} called with value {value}.")


@ieee_semantics
def asin(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``asin(a)``, computed alongside ``b = cos(asin(a))``.

    An argument with ``|a[0, 0]| >= 1`` emits a
    :class:`~taylorkit.utils.domain.DomainWarning`.
    """
    if is_number(a):
        _check_unit_interval("asin", a)
        return constant_value(np.arcsin(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        a00 = a.get(0, 0)
        _check_unit_interval("asin", a00)
        pool = _pool(context)
        h = _allocate(pool, a)
        b = _allocate(pool, a)
        h.set(0, 0, np.arcsin(a00))
        b.set(0, 0, np.cos(h.get(0, 0)))
        b00 = b.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, (a.get(x, y) - d_convolve(h, b, x, y)) / b00)
            b.set(x, y, -a00 * h.get(x, y) - d_convolve(h, a, x, y))
        pool.mark_free(b)
        return h
    raise _unhandled("asin", a)


@ieee_semantics
def acos(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``acos(a)``, computed alongside ``b = sin(acos(a))``.

    An argument with ``|a[0, 0]| >= 1`` emits a
    :class:`~taylorkit.utils.domain.DomainWarning`.
    """
    if is_number(a):
        _check_unit_interval("acos", a)
        return constant_value(np.arccos(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        a00 = a.get(0, 0)
        _check_unit_interval("acos", a00)
        pool = _pool(context)
        h = _allocate(pool, a)
        b = _allocate(pool, a)
        h.set(0, 0, np.arccos(a00))
        b.set(0, 0, np.sin(h.get(0, 0)))
        b00 = b.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, (a.get(x, y) + d_convolve(h, b, x, y)) / -b00)
            b.set(x, y, a00 * h.get(x, y) + d_convolve(h, a, x, y))
        pool.mark_free(b)
        return h
    raise _unhandled("acos", a)


@ieee_semantics
def atan(a: Series2DOrNumber, *, context: AutodiffContext | None = None) -> Series2D:
    """Returns ``atan(a)``, computed alongside ``b = 1 + a^2``."""
    if is_number(a):
        return constant_value(np.arctan(np.float64(a)), context=context)
    if isinstance(a, Series2D):
        pool = _pool(context)
        h = _allocate(pool, a)
        b = _allocate(pool, a)
        a00 = a.get(0, 0)
        h.set(0, 0, np.arctan(a00))
        b.set(0, 0, 1 + a00 * a00)
        b00 = b.get(0, 0)
        for x, y in _cells(h.size):
            h.set(x, y, (a.get(x, y) - d_convolve(h, b, x, y)) / b00)
            b.set(x, y, 2 * (a00 * a.get(x, y) + d_convolve(a, a, x, y)))
        pool.mark_free(b)
        return h
    raise _unhandled("atan", a)
