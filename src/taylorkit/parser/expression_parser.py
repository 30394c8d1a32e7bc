"""Parses expression text into a syntax tree or a user-readable error.

Grammar, from loosest to tightest binding:

    expression := expression ('+' | '-') expression
                | expression ('*' | '/') expression
                | expression '^' expression
                | ('+' | '-') expression
                | name '(' expression ')'
                | '(' expression ')'
                | number | name

All binary operators are left-associative, ``^`` included, and prefix
operators bind tighter than ``^``, so ``-x^2`` is ``(-x)^2``.

Examples:
    >>> from taylorkit.parser.expression_parser import parse_expression
    >>> from taylorkit.parser.nodes import to_debug_string
    >>> to_debug_string(parse_expression("x ^ (a + b)").expression)
    '[[x] ^ [( [[a] + [b]] )]]'
    >>> parse_expression("x +").user_readable_error
    'We expected something after the operator +'
"""

from __future__ import annotations

from typing import NamedTuple

from taylorkit.parser.errors import ErrorMsg, ParserError
from taylorkit.parser.nodes import FunctionCall, Group, Identifier, Literal, Node, to_debug_string
from taylorkit.parser.parser_context import ParserContext
from taylorkit.parser.pratt_parser import ExpressionParser, Precedence
from taylorkit.parser.tokenizer import Token, TokenType, tokenize

__all__ = [
    "ParsedExpression",
    "parse_expression",
]


class ParsedExpression(NamedTuple):
    """Result of :func:`parse_expression`.

    At most one of the fields is set. Both are None for an empty source,
    which is not an error, just nothing to compile.
    """

    expression: Node | None
    user_readable_error: str | None


def _parse_group(parser: ExpressionParser, token: Token) -> Node:
    if parser.peek().type is TokenType.RIGHT_PAREN:
        raise ParserError(ErrorMsg.EMPTY_PARENS)
    expr = parser.parse_expression(Precedence.LOWEST)
    if expr is None:
        raise ParserError(ErrorMsg.GENERIC_FAILURE)
    if not parser.consume_if_present(TokenType.RIGHT_PAREN):
        raise ParserError(ErrorMsg.MISSING_RIGHT_PAREN)
    return Group(argument=expr)


def _describe(node: Node) -> str:
    if isinstance(node, Identifier | Literal):
        return node.token.value
    return to_debug_string(node)


def _parse_call(parser: ExpressionParser, left: Node, token: Token) -> Node:
    # Only single-argument calls like sin(x) exist.
    argument = parser.parse_expression(Precedence.LOWEST)
    if argument is None:
        raise ParserError(ErrorMsg.invalid_argument(_describe(left)))
    if not parser.consume_if_present(TokenType.RIGHT_PAREN):
        raise ParserError(ErrorMsg.MISSING_RIGHT_PAREN)
    if not isinstance(left, Identifier):
        raise ParserError(ErrorMsg.NON_IDENTIFIER_FUNCTION_NAME)
    return FunctionCall(function=left, argument=argument)


def _build_parser(ctx: ParserContext) -> ExpressionParser:
    parser = ExpressionParser(ctx)

    parser.register_terminal(TokenType.INT_LITERAL, lambda token: Literal(token=token))
    parser.register_terminal(TokenType.FLOAT_LITERAL, lambda token: Literal(token=token))
    parser.register_terminal(TokenType.IDENTIFIER, lambda token: Identifier(token=token))

    parser.register_prefix_operator(TokenType.PLUS)
    parser.register_prefix_operator(TokenType.MINUS)

    parser.register_binary_operator(TokenType.PLUS, Precedence.SUM)
    parser.register_binary_operator(TokenType.MINUS, Precedence.SUM)
    parser.register_binary_operator(TokenType.MULTIPLY, Precedence.PRODUCT)
    parser.register_binary_operator(TokenType.DIVIDE, Precedence.PRODUCT)
    parser.register_binary_operator(TokenType.POW, Precedence.EXPONENT)

    parser.register_prefix(TokenType.LEFT_PAREN, _parse_group)
    parser.register_infix(TokenType.LEFT_PAREN, Precedence.CALL, _parse_call)
    return parser


def parse_expression(source: str) -> ParsedExpression:
    """Parses ``source``.

    Malformed input is reported through ``user_readable_error``; this
    function does not raise :class:`ParserError`.

    Args:
        source: Expression text.

    Returns:
        The syntax tree, or the reason it could not be built.
    """
    source = source.strip()
    if not source:
        return ParsedExpression(None, None)

    try:
        ctx = ParserContext(tokenize(source))
        expression = _build_parser(ctx).parse_expression(Precedence.LOWEST)
    except ParserError as err:
        return ParsedExpression(None, str(err))

    if expression is None or ctx.has_more_tokens():
        return ParsedExpression(None, ErrorMsg.GENERIC_FAILURE)
    return ParsedExpression(expression, None)
