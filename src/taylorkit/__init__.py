"""Provides all taylorkit methods."""

from importlib.metadata import PackageNotFoundError, version

from taylorkit.autodiff_kit import (
    AutodiffKit,
    ParseError,
    compile_expression,
    compile_function,
    compile_two_variable_function,
)
from taylorkit.compiler.code_generator import CompiledFunction, CompileError
from taylorkit.context import AutodiffContext, get_degree, set_degree, use_context
from taylorkit.parser.errors import ExpressionError, ParserError
from taylorkit.utils.domain import DomainWarning

try:
    __version__ = version("taylorkit")
except PackageNotFoundError:
    pass

compile = compile_expression

__all__ = [
    "AutodiffContext",
    "AutodiffKit",
    "CompiledFunction",
    "CompileError",
    "DomainWarning",
    "ExpressionError",
    "ParseError",
    "ParserError",
    "compile",
    "compile_expression",
    "compile_function",
    "compile_two_variable_function",
    "get_degree",
    "set_degree",
    "use_context",
]
