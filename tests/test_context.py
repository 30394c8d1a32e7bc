"""Tests for taylorkit.context."""

import pytest

from taylorkit import context as context_module
from taylorkit.context import (
    DEGREE_ENV_VAR,
    AutodiffContext,
    default_context,
    get_current_context,
    get_degree,
    resolve_context,
    set_degree,
    use_context,
)
from taylorkit.series import series as s


def test_default_degree_is_five(monkeypatch):
    """Tests that a context without degree or environment override uses 5."""
    monkeypatch.delenv(DEGREE_ENV_VAR, raising=False)
    assert AutodiffContext().degree == 5


def test_degree_read_from_environment(monkeypatch):
    """Tests that TAYLORKIT_DEGREE sets the initial degree."""
    monkeypatch.setenv(DEGREE_ENV_VAR, "7")
    assert AutodiffContext().degree == 7


def test_invalid_environment_degree_is_ignored(monkeypatch, caplog):
    """Tests that an unusable TAYLORKIT_DEGREE falls back to 5 with a warning."""
    monkeypatch.setenv(DEGREE_ENV_VAR, "lots")
    with caplog.at_level("WARNING", logger="taylorkit"):
        ctx = AutodiffContext()
    assert ctx.degree == 5
    assert DEGREE_ENV_VAR in caplog.text


def test_negative_environment_degree_is_ignored(monkeypatch):
    """Tests that a negative TAYLORKIT_DEGREE is ignored."""
    monkeypatch.setenv(DEGREE_ENV_VAR, "-1")
    assert AutodiffContext().degree == 5


def test_explicit_degree_wins_over_environment(monkeypatch):
    """Tests that an explicit degree overrides the environment."""
    monkeypatch.setenv(DEGREE_ENV_VAR, "7")
    assert AutodiffContext(degree=1).degree == 1


@pytest.mark.parametrize("bad", [-1, -10])
def test_negative_degree_rejected(bad):
    """Tests that negative degrees raise ValueError."""
    with pytest.raises(ValueError):
        AutodiffContext(degree=bad)
    with pytest.raises(ValueError):
        AutodiffContext(degree=2).set_degree(bad)


@pytest.mark.parametrize("bad", [1.5, "3", True, None])
def test_non_integer_degree_rejected(bad):
    """Tests that non-integer degrees raise TypeError."""
    with pytest.raises(TypeError):
        AutodiffContext(degree=2).set_degree(bad)


def test_set_degree_changes_length_of_new_series():
    """Tests that series built after set_degree have the new length."""
    ctx = AutodiffContext(degree=2)
    assert len(s.constant_value(1.0, context=ctx)) == 3
    ctx.set_degree(4)
    assert len(s.constant_value(1.0, context=ctx)) == 5
    assert len(ctx.series2d_pool.allocate()) == 25


def test_set_degree_discards_free_buffers_only():
    """Tests that changing the degree drops free buffers but leaves in-use ones intact."""
    ctx = AutodiffContext(degree=2)
    pool = ctx.series_pool
    free = s.constant_value(1.0, context=ctx)
    busy = s.variable_evaluated_at_point(3.0, context=ctx)
    pool.mark_free(free)
    assert pool.num_free == 1

    ctx.set_degree(3)
    assert pool.num_free == 0
    assert busy.coefficients.tolist() == [3.0, 1.0, 0.0]

    pool.mark_free(busy)
    assert pool.num_free == 0
    assert len(pool.allocate()) == 4


def test_set_degree_same_value_keeps_free_buffers():
    """Tests that setting the current degree again is a no-op."""
    ctx = AutodiffContext(degree=2)
    ctx.series_pool.mark_free(s.constant_value(1.0, context=ctx))
    ctx.set_degree(2)
    assert ctx.series_pool.num_free == 1


def test_set_degree_logs_change(caplog):
    """Tests that a degree change is logged at INFO level."""
    ctx = AutodiffContext(degree=2)
    with caplog.at_level("INFO", logger="taylorkit"):
        ctx.set_degree(6)
    assert "from 2 to 6" in caplog.text


def test_use_context_switches_and_restores():
    """Tests that use_context activates a context only inside the block."""
    ctx = AutodiffContext(degree=1)
    assert get_current_context() is default_context
    with use_context(ctx) as active:
        assert active is ctx
        assert get_current_context() is ctx
        assert get_degree() == 1
    assert get_current_context() is default_context


def test_resolve_context_prefers_explicit_context():
    """Tests that resolve_context returns the argument when given one."""
    ctx = AutodiffContext(degree=1)
    assert resolve_context(ctx) is ctx
    assert resolve_context(None) is get_current_context()


def test_module_set_degree_acts_on_current_context():
    """Tests that set_degree and get_degree act on the active context."""
    set_degree(3)
    assert default_context.degree == 3
    assert get_degree() == 3

    ctx = AutodiffContext(degree=1)
    with use_context(ctx):
        set_degree(4)
    assert ctx.degree == 4
    assert context_module.get_degree() == 3
