"""Non-fatal diagnostics for arguments outside a function's real domain.

The series kernels never raise for floating point problems. Instead they
emit a :class:`DomainWarning` and carry on, producing ``nan`` or ``inf``
coefficients exactly like IEEE-754 arithmetic would.
"""

from __future__ import annotations

import sys
import warnings

import numpy as np
from numpy.typing import ArrayLike

from taylorkit.logger import taylorkit_logger

__all__ = [
    "DomainWarning",
    "warn_domain",
    "log_if_nan",
]


class DomainWarning(RuntimeWarning):
    """Raised (as a warning) when a kernel is evaluated outside its domain."""


def _is_package_frame(frame) -> bool:
    name = frame.f_globals.get("__name__", "")
    return name == "taylorkit" or name.startswith("taylorkit.")


def warn_domain(message: str) -> None:
    """Emits a :class:`DomainWarning` pointing at the first caller outside taylorkit.

    Kernels reach this function through decorators, helpers and each other,
    so the stack level is found by skipping every frame of the package.

    Args:
        message: Human-readable description of the violated domain.
    """
    stacklevel = 2
    frame = sys._getframe(1)
    while frame is not None and _is_package_frame(frame):
        frame = frame.f_back
        stacklevel += 1
    warnings.warn(message, DomainWarning, stacklevel=stacklevel)


def log_if_nan(values: ArrayLike, *, where: str) -> bool:
    """Logs a warning if ``values`` contains NaN entries.

    Args:
        values: Array-like of computed derivatives.
        where: Context string for the log message.

    Returns:
        True if at least one NaN was found.
    """
    has_nan = bool(np.isnan(np.asarray(values, dtype=float)).any())
    if has_nan:
        taylorkit_logger.warning(
            "%s: encountered NaN values in the result; this is usually caused by an "
            "invalid operation such as asin(1000) or a fractional power of a "
            "negative number.",
            where,
        )
    return has_nan
