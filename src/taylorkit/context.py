"""Provides :class:`AutodiffContext`, the owner of the degree and the pools.

The degree (number of derivatives to compute) decides the length of every
series built afterwards, so it lives next to the pools that build them. A
context is explicit state: kernels and compiled functions take one as an
argument and fall back to the current context when none is given.

Examples:
    Using the module-level default context:

        >>> from taylorkit.context import get_degree, set_degree
        >>> set_degree(3)
        >>> get_degree()
        3

    Temporarily switching to a private context:

        >>> from taylorkit.context import AutodiffContext, use_context
        >>> ctx = AutodiffContext(degree=2)
        >>> with use_context(ctx):
        ...     get_degree()
        2
"""

from __future__ import annotations

import contextvars
import os
from collections.abc import Iterator
from contextlib import contextmanager

from taylorkit.logger import taylorkit_logger
from taylorkit.pool import Pool
from taylorkit.series.containers import Series, Series2D
from taylorkit.utils.validate import validate_degree

__all__ = [
    "AutodiffContext",
    "default_context",
    "get_current_context",
    "resolve_context",
    "use_context",
    "set_degree",
    "get_degree",
]

DEGREE_ENV_VAR = "TAYLORKIT_DEGREE"
_FALLBACK_DEGREE = 5


def _degree_from_env(name: str) -> int | None:
    """Reads a non-negative integer from an environment variable, or None if unset/invalid.

    Args:
        name: Environment variable name.

    Returns:
        The degree, or None.
    """
    v = os.getenv(name)
    if not v:
        return None
    try:
        return validate_degree(int(v))
    except ValueError:
        taylorkit_logger.warning("Ignoring %s=%r; expected a non-negative integer.", name, v)
        return None


def _clear_series(s: Series | Series2D) -> None:
    s.coefficients.fill(0.0)


def _copy_series(to: Series | Series2D, src: Series | Series2D) -> None:
    # A shape mismatch raises here, which is what we want.
    to.coefficients[:] = src.coefficients


class AutodiffContext:
    """Holds the degree and the series pools shared by kernels and compilers.

    A context is meant to be owned by a single thread.

    Attributes:
        series_pool: Pool of univariate series.
        series2d_pool: Pool of bivariate series.
    """

    def __init__(self, degree: int | None = None):
        """Initialises the context.

        Args:
            degree: Number of derivatives to compute. Defaults to the value of
                the ``TAYLORKIT_DEGREE`` environment variable, or 5.
        """
        if degree is None:
            degree = _degree_from_env(DEGREE_ENV_VAR)
        self._degree = _FALLBACK_DEGREE if degree is None else validate_degree(degree)
        self.series_pool: Pool[Series] = Pool(
            lambda: Series(self._degree), _clear_series, _copy_series
        )
        self.series2d_pool: Pool[Series2D] = Pool(
            lambda: Series2D(self._degree), _clear_series, _copy_series
        )

    @property
    def degree(self) -> int:
        """Number of derivatives computed by series built in this context."""
        return self._degree

    def set_degree(self, degree: int) -> None:
        """Changes the number of derivatives to compute.

        Free buffers of the old shape are discarded rather than resized;
        buffers still in use by a running computation are not touched.

        Args:
            degree: New non-negative degree.
        """
        degree = validate_degree(degree)
        if degree == self._degree:
            return
        self.series_pool.forget_free_elements()
        self.series2d_pool.forget_free_elements()
        taylorkit_logger.info("Degree changed from %d to %d.", self._degree, degree)
        self._degree = degree

    def __repr__(self) -> str:
        return f"AutodiffContext(degree={self._degree})"


default_context = AutodiffContext()

_current_context_var: contextvars.ContextVar[AutodiffContext | None] = contextvars.ContextVar(
    "taylorkit_context", default=None
)


def get_current_context() -> AutodiffContext:
    """Returns the active context (the default context unless overridden)."""
    ctx = _current_context_var.get()
    return default_context if ctx is None else ctx


def resolve_context(context: AutodiffContext | None) -> AutodiffContext:
    """Returns ``context`` or, if it is None, the active context."""
    return get_current_context() if context is None else context


@contextmanager
def use_context(context: AutodiffContext) -> Iterator[AutodiffContext]:
    """Temporarily makes ``context`` the active context.

    Args:
        context: Context to activate.

    Yields:
        The activated context (restored to the previous one on exit).
    """
    token = _current_context_var.set(context)
    try:
        yield context
    finally:
        _current_context_var.reset(token)


def set_degree(degree: int) -> None:
    """Sets the number of derivatives to compute in the active context."""
    get_current_context().set_degree(degree)


def get_degree() -> int:
    """Returns the number of derivatives computed in the active context."""
    return get_current_context().degree
