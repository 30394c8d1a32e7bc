"""Pytest configuration file with fixtures isolating the autodiff context."""

import pytest

from taylorkit.context import AutodiffContext, default_context, use_context

__all__ = ["ctx"]


@pytest.fixture
def ctx():
    """Return a fresh context of degree 2, active for the duration of the test."""
    context = AutodiffContext(degree=2)
    with use_context(context):
        yield context


@pytest.fixture(autouse=True)
def _restore_default_degree():
    """Undo changes tests make to the degree of the default context."""
    degree = default_context.degree
    yield
    default_context.set_degree(degree)
