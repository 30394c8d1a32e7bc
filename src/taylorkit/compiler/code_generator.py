"""Turns a syntax tree into a callable that evaluates derivatives.

The tree is translated once into a tree of closures, one per node, each
calling the matching kernel function. Calling the result only runs those
closures; nothing is parsed, looked up or generated at call time.

Examples:
    >>> from taylorkit.compiler.code_generator import compile_node
    >>> from taylorkit.context import AutodiffContext
    >>> from taylorkit.parser.expression_parser import parse_expression
    >>> tree = parse_expression("x x + 1").expression
    >>> f = compile_node(tree, ("x",), context=AutodiffContext(degree=3))
    >>> f(2.0).tolist()
    [5.0, 4.0, 2.0, 0.0]
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from types import ModuleType
from typing import Any

from taylorkit.context import AutodiffContext, resolve_context
from taylorkit.logger import taylorkit_logger
from taylorkit.parser.errors import ErrorMsg, ExpressionError
from taylorkit.parser.nodes import (
    BinaryOperator,
    FunctionCall,
    Group,
    Identifier,
    Literal,
    Node,
    PrefixOperator,
)
from taylorkit.pool import Pool
from taylorkit.series import SUPPORTED_FUNCTIONS
from taylorkit.series import series as univariate
from taylorkit.series import series2d as bivariate
from taylorkit.utils.domain import log_if_nan
from taylorkit.utils.types import FloatArray
from taylorkit.utils.validate import validate_variable_names

__all__ = [
    "CompileError",
    "Kernel",
    "Evaluator",
    "CompiledFunction",
    "kernel_for",
    "build_evaluator",
    "compile_node",
]

#: Evaluates a compiled subexpression given the variable series and the context.
Evaluator = Callable[[Sequence[Any], AutodiffContext], Any]

_BINARY_OPERATORS = {
    "+": "add",
    "-": "subtract",
    "*": "multiply",
    "/": "divide",
    "^": "pow",
}


class CompileError(ExpressionError):
    """Raised when a well-formed expression cannot be compiled."""


@dataclass(frozen=True)
class Kernel:
    """The series operations used by compiled functions of one arity.

    Attributes:
        module: Module implementing the operations.
        variables: Builders of the series of each independent variable.
        pool: Returns the pool holding this kernel's series in a context.
    """

    module: ModuleType
    variables: tuple[Callable[..., Any], ...]
    pool: Callable[[AutodiffContext], Pool]

    def operation(self, name: str) -> Callable[..., Any]:
        return getattr(self.module, name)

    def to_derivatives(self, value: Any, context: AutodiffContext) -> FloatArray:
        return self.module.to_derivatives(value, context=context)


UNIVARIATE_KERNEL = Kernel(
    module=univariate,
    variables=(univariate.variable_evaluated_at_point,),
    pool=lambda ctx: ctx.series_pool,
)

BIVARIATE_KERNEL = Kernel(
    module=bivariate,
    variables=(bivariate.x_evaluated_at_point, bivariate.y_evaluated_at_point),
    pool=lambda ctx: ctx.series2d_pool,
)


def kernel_for(num_variables: int) -> Kernel:
    """Returns the kernel handling functions of ``num_variables`` variables."""
    if num_variables == 1:
        return UNIVARIATE_KERNEL
    if num_variables == 2:
        return BIVARIATE_KERNEL
    raise ValueError(f"Expected one or two variables; got {num_variables}.")


def build_evaluator(node: Node, variable_names: Sequence[str], kernel: Kernel) -> Evaluator:
    """Translates ``node`` into a tree of closures over ``kernel``.

    Args:
        node: Root of the syntax tree.
        variable_names: Names of the independent variables, in call order.
        kernel: Operations to call.

    Returns:
        A function of the variable series and the context producing the
        value of the expression (a series or a plain number).

    Raises:
        CompileError: If the tree uses a name that is not a variable or
            calls an unsupported function.
    """
    match node:
        case Literal(token=token):
            value = float(token.value)
            return lambda variables, ctx: value

        case Identifier(token=token):
            if token.value not in variable_names:
                if token.followed_by_paren:
                    raise CompileError(ErrorMsg.unsupported_function(token.value))
                raise CompileError(ErrorMsg.unknown_identifier(token.value))
            index = list(variable_names).index(token.value)
            return lambda variables, ctx: variables[index]

        case Group(argument=argument):
            return build_evaluator(argument, variable_names, kernel)

        case PrefixOperator(token=token, argument=argument):
            operand = build_evaluator(argument, variable_names, kernel)
            if token.value == "+":
                return operand
            if token.value == "-":
                negative = kernel.operation("negative")
                return lambda variables, ctx: negative(operand(variables, ctx), context=ctx)
            raise RuntimeError(f"Unhandled prefix operator {token.value!r}.")

        case BinaryOperator(token=token, first_argument=first, second_argument=second):
            if token.value not in _BINARY_OPERATORS:
                raise RuntimeError(f"Unhandled binary operator {token.value!r}.")
            operation = kernel.operation(_BINARY_OPERATORS[token.value])
            left = build_evaluator(first, variable_names, kernel)
            right = build_evaluator(second, variable_names, kernel)
            return lambda variables, ctx: operation(
                left(variables, ctx), right(variables, ctx), context=ctx
            )

        case FunctionCall(function=Identifier(token=token), argument=argument):
            if token.value not in SUPPORTED_FUNCTIONS:
                raise CompileError(ErrorMsg.unsupported_function(token.value))
            function = kernel.operation(token.value)
            operand = build_evaluator(argument, variable_names, kernel)
            return lambda variables, ctx: function(operand(variables, ctx), context=ctx)

        case FunctionCall():
            raise CompileError(ErrorMsg.NON_IDENTIFIER_FUNCTION_NAME)

    raise TypeError(f"Unknown node type {type(node).__name__}.")


class CompiledFunction:
    """Computes the derivatives of a compiled expression at a point.

    Calling the object with one coordinate per variable returns a float
    array. For one variable, entry ``i`` is the ``i``-th derivative. For two
    variables the array has ``(degree + 1) ** 2`` entries and entry
    ``j * (degree + 1) + i`` is the derivative taken ``i`` times along the
    first variable and ``j`` times along the second.

    The degree is read from the context on every call, so changing it
    between calls changes the length of later results.
    """

    def __init__(
        self,
        variable_names: Sequence[str],
        source: str,
        evaluator: Evaluator,
        context: AutodiffContext | None = None,
    ):
        self.variable_names = tuple(variable_names)
        self.source = source
        self._evaluator = evaluator
        self._kernel = kernel_for(len(self.variable_names))
        self._context = context

    @property
    def context(self) -> AutodiffContext:
        """Context used by the next call."""
        return resolve_context(self._context)

    def __call__(self, *point: float) -> FloatArray:
        """Evaluates the expression and its derivatives at ``point``.

        Every series allocated during the call is returned to the pool
        before this method returns.

        Args:
            *point: One coordinate per variable.

        Returns:
            The derivative vector.

        Raises:
            TypeError: If the number of coordinates is wrong.
        """
        if len(point) != len(self.variable_names):
            raise TypeError(
                f"Expected {len(self.variable_names)} coordinate(s) for "
                f"({', '.join(self.variable_names)}); got {len(point)}."
            )
        ctx = self.context
        with self._kernel.pool(ctx).tracking():
            variables = [
                make(float(value), context=ctx)
                for make, value in zip(self._kernel.variables, point)
            ]
            result = self._evaluator(variables, ctx)
            derivatives = self._kernel.to_derivatives(result, ctx)
        log_if_nan(derivatives, where=f"{self!r} at {point}")
        return derivatives

    def __repr__(self) -> str:
        return f"CompiledFunction({', '.join(self.variable_names)}: {self.source!r})"


def compile_node(
    node: Node,
    variable_names: str | Sequence[str],
    *,
    source: str = "",
    context: AutodiffContext | None = None,
) -> CompiledFunction:
    """Compiles a syntax tree into a :class:`CompiledFunction`.

    Args:
        node: Root of the syntax tree.
        variable_names: One or two independent variable names.
        source: Text the tree was parsed from, kept for display.
        context: Context to evaluate in. Defaults to the context active at
            call time.

    Returns:
        The compiled function.

    Raises:
        CompileError: If the tree cannot be compiled.
        ValueError: If ``variable_names`` is invalid.
    """
    names = validate_variable_names(variable_names, reserved=SUPPORTED_FUNCTIONS)
    evaluator = build_evaluator(node, names, kernel_for(len(names)))
    taylorkit_logger.debug("Compiled %r for variables %s.", source, names)
    return CompiledFunction(names, source, evaluator, context)
