"""Tests for taylorkit.compiler.code_generator."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from taylorkit.compiler.code_generator import (
    BIVARIATE_KERNEL,
    UNIVARIATE_KERNEL,
    CompiledFunction,
    CompileError,
    build_evaluator,
    compile_node,
    kernel_for,
)
from taylorkit.context import AutodiffContext, use_context
from taylorkit.parser.errors import ErrorMsg, ExpressionError
from taylorkit.parser.expression_parser import parse_expression


def _compile(source, names=("x",), **kwargs):
    return compile_node(parse_expression(source).expression, names, source=source, **kwargs)


def test_kernel_for_picks_kernel_by_arity():
    """Tests that one and two variables map to the matching kernels."""
    assert kernel_for(1) is UNIVARIATE_KERNEL
    assert kernel_for(2) is BIVARIATE_KERNEL
    with pytest.raises(ValueError):
        kernel_for(3)


def test_compile_x_plus_one(ctx):
    """Tests x + 1 at x = 1 with degree 3."""
    ctx.set_degree(3)
    f = _compile("x + 1")
    out = f(1.0)
    assert isinstance(out, np.ndarray)
    assert_allclose(out, [2, 1, 0, 0])


def test_compile_implicit_product(ctx):
    """Tests x x + 1 at x = 2 with degree 3."""
    ctx.set_degree(3)
    assert_allclose(_compile("x x + 1")(2.0), [5, 4, 2, 0])


def test_compile_two_variables(ctx):
    """Tests (x y)^2 at (3, 2) with degree 2."""
    f = _compile("(x * y) ^ 2", ("x", "y"))
    x, y = 3.0, 2.0
    assert_allclose(
        f(x, y),
        [
            x * x * y * y, 2 * x * y * y, 2 * y * y,
            2 * y * x * x, 4 * x * y, 4 * y,
            2 * x * x, 4 * x, 4,
        ],
    )


def test_compile_variable_order_follows_names(ctx):
    """Tests that the first name is the first coordinate and axis."""
    f = _compile("y", ("y", "x"))
    assert_allclose(f(5.0, 7.0), [5, 1, 0, 0, 0, 0, 0, 0, 0])


@pytest.mark.parametrize(
    "source, expected",
    [
        ("-x", lambda v: [-v, -1, 0]),
        ("+x", lambda v: [v, 1, 0]),
        ("(x)", lambda v: [v, 1, 0]),
        ("x - 1", lambda v: [v - 1, 1, 0]),
        ("1 / x", lambda v: [1 / v, -1 / v**2, 2 / v**3]),
        ("exp(2x)", lambda v: [math.exp(2 * v), 2 * math.exp(2 * v), 4 * math.exp(2 * v)]),
        ("ln(x)", lambda v: [math.log(v), 1 / v, -1 / v**2]),
        ("log(x)", lambda v: [math.log(v), 1 / v, -1 / v**2]),
        ("sqrt(x)", lambda v: [math.sqrt(v), 0.5 / math.sqrt(v), -0.25 * v**-1.5]),
        ("sin(x)", lambda v: [math.sin(v), math.cos(v), -math.sin(v)]),
        ("cos(x)", lambda v: [math.cos(v), -math.sin(v), -math.cos(v)]),
        ("tan(x)", lambda v: [math.tan(v), 1 / math.cos(v) ** 2, 2 * math.tan(v) / math.cos(v) ** 2]),
        ("asin(x)", lambda v: [math.asin(v), (1 - v * v) ** -0.5, v * (1 - v * v) ** -1.5]),
        ("acos(x)", lambda v: [math.acos(v), -((1 - v * v) ** -0.5), -v * (1 - v * v) ** -1.5]),
        ("atan(x)", lambda v: [math.atan(v), 1 / (1 + v * v), -2 * v / (1 + v * v) ** 2]),
        ("x ^ 3", lambda v: [v**3, 3 * v**2, 6 * v]),
        ("2 ^ x", lambda v: [2**v, math.log(2) * 2**v, math.log(2) ** 2 * 2**v]),
    ],
)
def test_compile_operators_and_functions(ctx, source, expected):
    """Tests every operator and supported function at x = 0.5."""
    v = 0.5
    assert_allclose(_compile(source)(v), expected(v), atol=1e-12)


def test_constant_expression_returns_constant_vector(ctx):
    """Tests that an expression without variables has zero derivatives."""
    assert_allclose(_compile("2 + 3")(10.0), [5, 0, 0])
    assert_allclose(_compile("4")(10.0), [4, 0, 0])
    assert_allclose(_compile("4", ("x", "y"))(1.0, 2.0), [4, 0, 0, 0, 0, 0, 0, 0, 0])


def test_unknown_identifier_is_compile_error():
    """Tests that names other than the variables are rejected at compile time."""
    with pytest.raises(CompileError) as excinfo:
        _compile("x + z")
    assert str(excinfo.value) == ErrorMsg.unknown_identifier("z")
    assert isinstance(excinfo.value, ExpressionError)


def test_function_name_as_value_is_compile_error():
    """Tests that a bare function name is not a variable."""
    with pytest.raises(CompileError, match="sin"):
        _compile("sin + x")


def test_unsupported_function_is_compile_error():
    """Tests that calls to unknown functions are rejected at compile time."""
    with pytest.raises(CompileError) as excinfo:
        _compile("sinh(x)")
    assert str(excinfo.value) == ErrorMsg.unsupported_function("sinh")


@pytest.mark.parametrize("source, name", [("foo(x)", "foo"), ("2 sinh(x)", "sinh"), ("x + cosh (x)", "cosh")])
def test_unknown_name_before_parenthesis_is_unsupported_function(source, name):
    """Tests that an unknown name applied to a group is reported as a function."""
    with pytest.raises(CompileError) as excinfo:
        _compile(source)
    assert str(excinfo.value) == ErrorMsg.unsupported_function(name)


def test_variable_before_parenthesis_multiplies(ctx):
    """Tests that a variable written before a group is still a product."""
    f = _compile("x(y + 1)", ("x", "y"))
    assert_allclose(f(2.0, 3.0), [8, 4, 0, 2, 1, 0, 0, 0, 0])


def test_build_evaluator_does_not_evaluate():
    """Tests that compiling performs no numeric work."""
    tree = parse_expression("ln(x) / x").expression
    evaluator = build_evaluator(tree, ("x",), UNIVARIATE_KERNEL)
    assert callable(evaluator)


def test_wrong_number_of_coordinates_raises(ctx):
    """Tests that calls with the wrong arity raise TypeError."""
    f = _compile("x y", ("x", "y"))
    with pytest.raises(TypeError):
        f(1.0)
    with pytest.raises(TypeError):
        _compile("x")(1.0, 2.0)


@pytest.mark.parametrize("names", [("x", "x"), ("x", "y", "z"), (), ("x1",), ("sin",)])
def test_invalid_variable_names_raise(names):
    """Tests that invalid variable name lists are rejected."""
    with pytest.raises(ValueError):
        _compile("1", names)


def test_evaluation_releases_all_buffers(ctx):
    """Tests that every series allocated during a call is returned to the pool."""
    f = _compile("sin(x) ^ 2 + cos(x) ^ 2 + exp(x) / (1 + x)")
    f(0.3)
    pool = ctx.series_pool
    created = pool.num_created
    assert pool.num_free == created
    for _ in range(10):
        f(0.3)
    assert pool.num_created == created
    assert pool.num_free == created
    assert pool.tracking_depth == 0


def test_two_variable_evaluation_uses_bivariate_pool(ctx):
    """Tests that two-variable functions allocate from the bivariate pool."""
    _compile("exp(x y)", ("x", "y"))(1.0, 2.0)
    assert ctx.series2d_pool.num_created > 0
    assert ctx.series2d_pool.num_free == ctx.series2d_pool.num_created
    assert ctx.series_pool.num_created == 0


def test_degree_change_between_calls(ctx):
    """Tests that the degree is read from the context on every call."""
    f = _compile("exp(x)")
    assert len(f(0.0)) == 3
    ctx.set_degree(5)
    assert_allclose(f(0.0), np.ones(6))
    assert len(_compile("x y", ("x", "y"))(1.0, 1.0)) == 36


def test_explicit_context_is_used():
    """Tests that a function bound to a context ignores the active one."""
    bound = AutodiffContext(degree=1)
    f = _compile("x", context=bound)
    assert f.context is bound
    with use_context(AutodiffContext(degree=4)):
        assert_allclose(f(2.0), [2, 1])


def test_nan_result_is_logged(ctx, caplog):
    """Tests that a result containing nan logs a warning."""
    f = _compile("x ^ 0.5")
    with caplog.at_level("WARNING", logger="taylorkit"):
        out = f(-1.0)
    assert np.isnan(out).all()
    assert "NaN" in caplog.text


def test_integer_power_of_negative_value_is_nan(ctx):
    """Tests that x ^ 2 at a negative point is nan everywhere."""
    assert np.isnan(_compile("x ^ 2")(-1.0)).all()
    assert np.isnan(_compile("(x y) ^ 3", ("x", "y"))(-1.0, 2.0)).all()


def test_compiled_function_repr():
    """Tests that the repr shows the variables and the source."""
    f = _compile("x + 1")
    assert isinstance(f, CompiledFunction)
    assert repr(f) == "CompiledFunction(x: 'x + 1')"
    assert f.variable_names == ("x",)
    assert f.source == "x + 1"
