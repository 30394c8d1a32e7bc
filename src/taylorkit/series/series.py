"""Algebra on univariate truncated Taylor series.

Every function here maps :data:`SeriesOrNumber` operands to a new pooled
:class:`Series`, which makes it possible to compute derivatives of any
order by forward-mode automatic differentiation: evaluate the expression
on the series ``x0 + 1 (x - x0)`` and read the derivatives off the result.

The recurrences follow R. D. Neidinger, *Introduction to Automatic
Differentiation and MATLAB Object-Oriented Programming*, SIAM Review 52(3),
2010. Most elementary functions use the ODE technique: if ``h = f(a)``
satisfies ``h' = a' g`` for some series ``g``, then

    h_k = (1 / k) * sum_{i=1..k} i a_i g_{k-i}

so each coefficient only needs the ones before it.

Examples:
    >>> from taylorkit.context import AutodiffContext
    >>> from taylorkit.series import series as s
    >>> ctx = AutodiffContext(degree=3)
    >>> x = s.variable_evaluated_at_point(16.0, context=ctx)
    >>> s.to_derivatives(s.sqrt(x, context=ctx)).tolist()
    [4.0, 0.125, -0.00390625, 0.0003662109375]

Notes:
    - Inputs are never mutated.
    - ``context`` defaults to :func:`taylorkit.context.get_current_context`.
    - Floating point problems never raise; see :mod:`taylorkit.utils.domain`.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from taylorkit.context import AutodiffContext, resolve_context
from taylorkit.pool import Pool
from taylorkit.series.containers import Series, SeriesOrNumber
from taylorkit.utils.domain import warn_domain
from taylorkit.utils.numerics import factorials, ieee_semantics, is_number
from taylorkit.utils.types import FloatArray
from taylorkit.utils.validate import check_same_length

__all__ = [
    "constant_value",
    "variable_evaluated_at_point",
    "to_derivatives",
    "convolve",
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


def _pool(context: AutodiffContext | None) -> Pool[Series]:
    return resolve_context(context).series_pool


def _allocate(pool: Pool[Series], *operands: Series) -> Series:
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


def _weighted(c: FloatArray) -> FloatArray:
    """Returns ``[0 c_0, 1 c_1, 2 c_2, ...]``."""
    return np.arange(c.size) * c


def constant_value(value: float, *, context: AutodiffContext | None = None) -> Series:
    """Returns the series of a constant: ``[value, 0, 0, ...]``."""
    res = _pool(context).allocate()
    res.coefficients[0] = value
    return res


def variable_evaluated_at_point(value: float, *, context: AutodiffContext | None = None) -> Series:
    """Returns the series of the independent variable at ``value``: ``[value, 1, 0, ...]``.

    With degree 0 the series only holds the value.
    """
    res = _pool(context).allocate()
    res.coefficients[0] = value
    if res.coefficients.size > 1:
        res.coefficients[1] = 1.0
    return res


def to_derivatives(s: SeriesOrNumber, *, context: AutodiffContext | None = None) -> FloatArray:
    """Converts a series to the vector of its value and derivatives.

    Args:
        s: A series, or a number (treated as a constant of the context's degree).
        context: Context used when ``s`` is a number.

    Returns:
        Array ``[c_0 0!, c_1 1!, ..., c_d d!]``.
    """
    if is_number(s):
        out = np.zeros(resolve_context(context).degree + 1, dtype=float)
        out[0] = s
        return out
    if isinstance(s, Series):
        return s.coefficients * factorials(s.degree)
    raise _unhandled("to_derivatives", s)


def convolve(a: ArrayLike, b: ArrayLike, k: int) -> float:
    """Returns the coefficient of order ``k`` of the product of two polynomials.

    Given ``f = sum a_i x^i`` and ``g = sum b_i x^i``, the coefficient next to
    ``x^k`` in ``f g`` is the discrete convolution ``sum_{i=0..k} a_i b_{k-i}``.

    Args:
        a: Coefficients of the first polynomial.
        b: Coefficients of the second polynomial (same length as ``a``).
        k: Order of the requested term.

    Returns:
        The k-th coefficient of the product.

    Raises:
        ValueError: If the lengths differ or ``k`` is out of range.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    check_same_length(a, b)
    if not 0 <= k < a.size:
        raise ValueError(f"k = {k} is out of range for polynomials of degree {a.size - 1}.")
    return float(np.dot(a[: k + 1], b[k::-1]))


@ieee_semantics
def add(a: SeriesOrNumber, b: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``a + b``. A scalar operand only shifts ``c_0``."""
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) + np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series):
        res = _allocate(pool, b)
        res.coefficients[:] = b.coefficients
        res.coefficients[0] += a
        return res
    if isinstance(a, Series) and is_number(b):
        res = _allocate(pool, a)
        res.coefficients[:] = a.coefficients
        res.coefficients[0] += b
        return res
    if isinstance(a, Series) and isinstance(b, Series):
        res = _allocate(pool, a, b)
        np.add(a.coefficients, b.coefficients, out=res.coefficients)
        return res
    raise _unhandled("add", a, b)


@ieee_semantics
def negative(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``-a``."""
    if is_number(a):
        return constant_value(-np.float64(a), context=context)
    if isinstance(a, Series):
        res = _allocate(_pool(context), a)
        np.negative(a.coefficients, out=res.coefficients)
        return res
    raise _unhandled("negative", a)


@ieee_semantics
def subtract(a: SeriesOrNumber, b: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``a - b``. A scalar operand only shifts ``c_0``."""
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) - np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series):
        res = _allocate(pool, b)
        np.negative(b.coefficients, out=res.coefficients)
        res.coefficients[0] += a
        return res
    if isinstance(a, Series) and is_number(b):
        res = _allocate(pool, a)
        res.coefficients[:] = a.coefficients
        res.coefficients[0] -= b
        return res
    if isinstance(a, Series) and isinstance(b, Series):
        res = _allocate(pool, a, b)
        np.subtract(a.coefficients, b.coefficients, out=res.coefficients)
        return res
    raise _unhandled("subtract", a, b)


@ieee_semantics
def multiply(a: SeriesOrNumber, b: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``a * b``.

    The coefficient ``h_k`` of the product collects every pair ``a_i b_j``
    with ``i + j = k``, i.e. the Cauchy product ``h_k = sum_{i=0..k} a_i b_{k-i}``.
    """
    pool = _pool(context)
    if is_number(a) and is_number(b):
        return constant_value(np.float64(a) * np.float64(b), context=context)
    if is_number(a) and isinstance(b, Series):
        res = _allocate(pool, b)
        np.multiply(b.coefficients, a, out=res.coefficients)
        return res
    if isinstance(a, Series) and is_number(b):
        res = _allocate(pool, a)
        np.multiply(a.coefficients, b, out=res.coefficients)
        return res
    if isinstance(a, Series) and isinstance(b, Series):
        res = _allocate(pool, a, b)
        res.coefficients[:] = np.convolve(a.coefficients, b.coefficients)[: res.coefficients.size]
        return res
    raise _unhandled("multiply", a, b)


@ieee_semantics
def divide(a: SeriesOrNumber, b: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``a / b``.

    Rearranging ``a = h b`` and popping the last term off the convolution
    gives

        h_k = (a_k - sum_{i=0..k-1} h_i b_{k-i}) / b_0

    A zero ``b_0`` (or zero scalar divisor) emits a
    :class:`~taylorkit.utils.domain.DomainWarning` and yields ``inf``/``nan``.
    """
    pool = _pool(context)
    if is_number(a) and is_number(b):
        if b == 0:
            warn_domain("divide called with a zero divisor.")
        return constant_value(np.float64(a) / np.float64(b), context=context)
    if isinstance(a, Series) and is_number(b):
        if b == 0:
            warn_domain("divide called with a zero divisor.")
        res = _allocate(pool, a)
        np.divide(a.coefficients, np.float64(b), out=res.coefficients)
        return res
    if is_number(a) and isinstance(b, Series):
        numerator = _allocate(pool, b)
        numerator.coefficients[0] = a
        res = divide(numerator, b, context=context)
        pool.mark_free(numerator)
        return res
    if isinstance(a, Series) and isinstance(b, Series):
        ac, bc = a.coefficients, b.coefficients
        if bc[0] == 0:
            warn_domain("divide called with a series whose first coefficient is zero.")
        res = _allocate(pool, a, b)
        h = res.coefficients
        h[0] = ac[0] / bc[0]
        for k in range(1, h.size):
            h[k] = (ac[k] - np.dot(h[:k], bc[k:0:-1])) / bc[0]
        return res
    raise _unhandled("divide", a, b)


@ieee_semantics
def sqrt(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``sqrt(a)`` using ``h_k = (a_k - sum_{i=1..k-1} h_i h_{k-i}) / (2 h_0)``."""
    if is_number(a):
        return constant_value(np.sqrt(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        res = _allocate(_pool(context), a)
        h = res.coefficients
        h[0] = np.sqrt(ac[0])
        for k in range(1, h.size):
            h[k] = (ac[k] - np.dot(h[1:k], h[k - 1 : 0 : -1])) / (2 * h[0])
        return res
    raise _unhandled("sqrt", a)


@ieee_semantics
def exp(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``exp(a)``; ``h' = a' h`` gives ``h_k = (1/k) sum_{i=1..k} i a_i h_{k-i}``."""
    if is_number(a):
        return constant_value(np.exp(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        da = _weighted(ac)
        res = _allocate(_pool(context), a)
        h = res.coefficients
        h[0] = np.exp(ac[0])
        for k in range(1, h.size):
            h[k] = np.dot(da[1 : k + 1], h[k - 1 :: -1]) / k
        return res
    raise _unhandled("exp", a)


@ieee_semantics
def ln(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns the natural logarithm of ``a``.

    From ``a h' = a'``:

        h_k = (a_k - (1/k) sum_{i=1..k-1} i h_i a_{k-i}) / a_0

    A non-positive argument (or ``a_0``) emits a
    :class:`~taylorkit.utils.domain.DomainWarning`.
    """
    if is_number(a):
        if a <= 0:
            warn_domain(f"ln called with a non-positive number ({a}).")
        return constant_value(np.log(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        if ac[0] <= 0:
            warn_domain(f"ln called with a series whose first coefficient is non-positive ({ac[0]}).")
        res = _allocate(_pool(context), a)
        h = res.coefficients
        idx = np.arange(h.size)
        h[0] = np.log(ac[0])
        for k in range(1, h.size):
            h[k] = (ac[k] - np.dot(idx[1:k] * h[1:k], ac[k - 1 : 0 : -1]) / k) / ac[0]
        return res
    raise _unhandled("ln", a)


log = ln


def _is_negative(a: SeriesOrNumber) -> bool:
    if is_number(a):
        return a < 0
    if isinstance(a, Series):
        return a.coefficients[0] < 0
    raise _unhandled("pow", a)


def _integer_power(a: SeriesOrNumber, n: int, context: AutodiffContext | None) -> Series:
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
def pow(a: SeriesOrNumber, b: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``a ** b``.

    A negative ``a`` (or ``a_0``) gives a series filled with ``nan``, whatever
    the exponent. Otherwise integer scalar exponents are computed by
    repeated multiplication and everything else as ``exp(b ln(a))``.
    """
    if not (is_number(a) or isinstance(a, Series)) or not (is_number(b) or isinstance(b, Series)):
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


def _sin_and_cos(a: SeriesOrNumber, context: AutodiffContext | None) -> tuple[Series, Series]:
    """Computes ``sin(a)`` and ``cos(a)`` together.

    With ``s = sin(a)`` and ``c = cos(a)`` we have ``s' = a' c`` and
    ``c' = -a' s``, so each series feeds the recurrence of the other.
    """
    if is_number(a):
        a = np.float64(a)
        return (
            constant_value(np.sin(a), context=context),
            constant_value(np.cos(a), context=context),
        )
    if isinstance(a, Series):
        ac = a.coefficients
        da = _weighted(ac)
        pool = _pool(context)
        sin_res = _allocate(pool, a)
        cos_res = _allocate(pool, a)
        s, c = sin_res.coefficients, cos_res.coefficients
        s[0] = np.sin(ac[0])
        c[0] = np.cos(ac[0])
        for k in range(1, s.size):
            s[k] = np.dot(da[1 : k + 1], c[k - 1 :: -1]) / k
            c[k] = -np.dot(da[1 : k + 1], s[k - 1 :: -1]) / k
        return sin_res, cos_res
    raise _unhandled("sin", a)


@ieee_semantics
def sin(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``sin(a)``."""
    s, c = _sin_and_cos(a, context)
    _pool(context).mark_free(c)
    return s


@ieee_semantics
def cos(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``cos(a)``."""
    s, c = _sin_and_cos(a, context)
    _pool(context).mark_free(s)
    return c


@ieee_semantics
def tan(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``tan(a)``.

    ``divide(sin(a), cos(a))`` would cost three convolutions per term.
    Instead, with ``h = tan(a)`` and ``b = 1 + h^2 = 1 / cos(a)^2``:

        h' = a' b
        b' = 2 h' h

    and both series are computed side by side; ``b`` is then released.
    """
    if is_number(a):
        return constant_value(np.tan(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        da = _weighted(ac)
        pool = _pool(context)
        res = _allocate(pool, a)
        aux = _allocate(pool, a)
        h, b = res.coefficients, aux.coefficients
        idx = np.arange(h.size)
        h[0] = np.tan(ac[0])
        b[0] = 1 / (np.cos(ac[0]) * np.cos(ac[0]))
        for k in range(1, h.size):
            h[k] = np.dot(da[1 : k + 1], b[k - 1 :: -1]) / k
            b[k] = 2 * np.dot(idx[1 : k + 1] * h[1 : k + 1], h[k - 1 :: -1]) / k
        pool.mark_free(aux)
        return res
    raise _unhandled("tan", a)


def _check_unit_interval(name: str, value: float) -> None:
    if abs(value) >= 1:
        warn_domain(f"{name} called with value {value}.")


@ieee_semantics
def asin(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``asin(a)``.

    With ``h = asin(a)`` and ``b = sqrt(1 - a^2)``:

        a' = h' b
        b' = -h' a

    Solving the first recurrence for ``h_k``:

        h_k = (a_k - (1/k) sum_{i=1..k-1} i h_i b_{k-i}) / b_0

    An argument with ``|a_0| >= 1`` emits a
    :class:`~taylorkit.utils.domain.DomainWarning`.
    """
    if is_number(a):
        _check_unit_interval("asin", a)
        return constant_value(np.arcsin(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        _check_unit_interval("asin", ac[0])
        pool = _pool(context)
        res = _allocate(pool, a)
        aux = _allocate(pool, a)
        h, b = res.coefficients, aux.coefficients
        idx = np.arange(h.size)
        h[0] = np.arcsin(ac[0])
        b[0] = np.sqrt(1 - ac[0] * ac[0])
        for k in range(1, h.size):
            h[k] = (ac[k] - np.dot(idx[1:k] * h[1:k], b[k - 1 : 0 : -1]) / k) / b[0]
            b[k] = -np.dot(idx[1 : k + 1] * h[1 : k + 1], ac[k - 1 :: -1]) / k
        pool.mark_free(aux)
        return res
    raise _unhandled("asin", a)


@ieee_semantics
def acos(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``acos(a)``.

    Same computation as :func:`asin` with the signs switched:

        a' = -h' b
        b' = h' a
    """
    if is_number(a):
        _check_unit_interval("acos", a)
        return constant_value(np.arccos(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        _check_unit_interval("acos", ac[0])
        pool = _pool(context)
        res = _allocate(pool, a)
        aux = _allocate(pool, a)
        h, b = res.coefficients, aux.coefficients
        idx = np.arange(h.size)
        h[0] = np.arccos(ac[0])
        b[0] = np.sqrt(1 - ac[0] * ac[0])
        for k in range(1, h.size):
            h[k] = (ac[k] + np.dot(idx[1:k] * h[1:k], b[k - 1 : 0 : -1]) / k) / -b[0]
            b[k] = np.dot(idx[1 : k + 1] * h[1 : k + 1], ac[k - 1 :: -1]) / k
        pool.mark_free(aux)
        return res
    raise _unhandled("acos", a)


@ieee_semantics
def atan(a: SeriesOrNumber, *, context: AutodiffContext | None = None) -> Series:
    """Returns ``atan(a)``.

    With ``h = atan(a)`` and ``b = 1 + a^2``:

        a' = h' b
        b' = 2 a' a
    """
    if is_number(a):
        return constant_value(np.arctan(np.float64(a)), context=context)
    if isinstance(a, Series):
        ac = a.coefficients
        da = _weighted(ac)
        pool = _pool(context)
        res = _allocate(pool, a)
        aux = _allocate(pool, a)
        h, b = res.coefficients, aux.coefficients
        idx = np.arange(h.size)
        h[0] = np.arctan(ac[0])
        b[0] = 1 + ac[0] * ac[0]
        for k in range(1, h.size):
            h[k] = (ac[k] - np.dot(idx[1:k] * h[1:k], b[k - 1 : 0 : -1]) / k) / b[0]
            b[k] = 2 * np.dot(da[1 : k + 1], ac[k - 1 :: -1]) / k
        pool.mark_free(aux)
        return res
    raise _unhandled("atan", a)
