"""Provides the public compile API and the AutodiffKit front end.

You write an expression in one or two variables as text, compile it once,
and call the result at as many points as you like. Each call returns the
value of the expression and all its derivatives up to the configured
degree, computed exactly by forward-mode automatic differentiation on
truncated Taylor series.

Examples:
    Compiling and evaluating with the module-level functions:

        >>> from taylorkit.autodiff_kit import compile_expression
        >>> from taylorkit.context import AutodiffContext
        >>> f = compile_expression("x", "x + 1", context=AutodiffContext(degree=3))
        >>> f(1.0).tolist()
        [2.0, 1.0, 0.0, 0.0]

    Malformed input is reported, not raised:

        >>> compile_expression("x", "sin(x")
        ParseError(message='The expression is missing a right parenthesis')

    Using the front end, which owns its own context:

        >>> from taylorkit.autodiff_kit import AutodiffKit
        >>> kit = AutodiffKit(degree=2)
        >>> kit.differentiate(("x", "y"), "x y", 3.0, 2.0).tolist()
        [6.0, 2.0, 0.0, 3.0, 1.0, 0.0, 0.0, 0.0, 0.0]

Notes:
    - An empty or blank source compiles to ``None``: there is nothing to
      evaluate, but nothing is wrong either.
    - Invalid variable names are a programming error and raise
      ``ValueError`` instead of producing a :class:`ParseError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from taylorkit.compiler.code_generator import CompiledFunction, CompileError, compile_node
from taylorkit.context import AutodiffContext
from taylorkit.parser.errors import ExpressionError
from taylorkit.parser.expression_parser import parse_expression
from taylorkit.series import SUPPORTED_FUNCTIONS
from taylorkit.utils.types import FloatArray
from taylorkit.utils.validate import validate_variable_names

__all__ = [
    "ParseError",
    "compile_expression",
    "compile_function",
    "compile_two_variable_function",
    "AutodiffKit",
]


@dataclass(frozen=True)
class ParseError:
    """Why an expression could not be compiled.

    Attributes:
        message: Explanation meant for the person who wrote the expression.
    """

    message: str

    def __str__(self) -> str:
        return self.message


def compile_expression(
    variable_names: str | Sequence[str],
    source: str,
    *,
    context: AutodiffContext | None = None,
) -> CompiledFunction | ParseError | None:
    """Parses and compiles ``source``.

    Args:
        variable_names: One or two distinct names of independent variables.
        source: Expression text, e.g. ``"sin(x y) + 2x"``.
        context: Context to evaluate in. Defaults to the context active at
            call time.

    Returns:
        The compiled function, a :class:`ParseError` if the expression is
        malformed or cannot be compiled, or None if ``source`` is blank.

    Raises:
        ValueError: If ``variable_names`` is invalid.
    """
    names = validate_variable_names(variable_names, reserved=SUPPORTED_FUNCTIONS)
    parsed = parse_expression(source)
    if parsed.user_readable_error is not None:
        return ParseError(parsed.user_readable_error)
    if parsed.expression is None:
        return None
    try:
        return compile_node(parsed.expression, names, source=source, context=context)
    except CompileError as err:
        return ParseError(str(err))


def _compile_strict(
    variable_names: Sequence[str],
    source: str,
    context: AutodiffContext | None,
) -> CompiledFunction:
    result = compile_expression(variable_names, source, context=context)
    if result is None:
        raise ValueError("Cannot compile an empty expression.")
    if isinstance(result, ParseError):
        raise ExpressionError(result.message)
    return result


def compile_function(
    variable_name: str,
    source: str,
    *,
    context: AutodiffContext | None = None,
) -> CompiledFunction:
    """Compiles a function of one variable, raising on bad input.

    Raises:
        ExpressionError: If the expression is malformed.
        ValueError: If the expression is empty or the name is invalid.
    """
    return _compile_strict((variable_name,), source, context)


def compile_two_variable_function(
    first_variable: str,
    second_variable: str,
    source: str,
    *,
    context: AutodiffContext | None = None,
) -> CompiledFunction:
    """Compiles a function of two variables, raising on bad input.

    Raises:
        ExpressionError: If the expression is malformed.
        ValueError: If the expression is empty or the names are invalid.
    """
    return _compile_strict((first_variable, second_variable), source, context)


class AutodiffKit:
    """Front end bundling a private context with the compile API.

    Functions compiled by a kit always evaluate in the kit's context, so
    changing the degree of one kit does not affect others.

    Example:
        >>> from taylorkit.autodiff_kit import AutodiffKit
        >>> kit = AutodiffKit(degree=4)
        >>> f = kit.compile("t", "exp(2t)")
        >>> f(0.0).tolist()
        [1.0, 2.0, 4.0, 8.0, 16.0]

    Attributes:
        context: The context owned by the kit.
    """

    def __init__(self, degree: int | None = None):
        """Initialises the kit.

        Args:
            degree: Number of derivatives to compute. Defaults to the
                ``TAYLORKIT_DEGREE`` environment variable, or 5.
        """
        self.context = AutodiffContext(degree)

    @property
    def degree(self) -> int:
        return self.context.degree

    def set_degree(self, degree: int) -> None:
        """Changes the number of derivatives computed by later calls."""
        self.context.set_degree(degree)

    def compile(
        self,
        variable_names: str | Sequence[str],
        source: str,
    ) -> CompiledFunction | ParseError | None:
        """Same as :func:`compile_expression` in the kit's context."""
        return compile_expression(variable_names, source, context=self.context)

    def differentiate(
        self,
        variable_names: str | Sequence[str],
        source: str,
        *point: float,
    ) -> FloatArray:
        """Compiles ``source`` and evaluates it at ``point`` in one go.

        Args:
            variable_names: One or two distinct variable names.
            source: Expression text.
            *point: One coordinate per variable.

        Returns:
            The derivative vector.

        Raises:
            ExpressionError: If the expression is malformed.
            ValueError: If the expression is empty or the names are invalid.
        """
        names = validate_variable_names(variable_names, reserved=SUPPORTED_FUNCTIONS)
        return _compile_strict(names, source, self.context)(*point)
