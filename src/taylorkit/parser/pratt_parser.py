"""A Pratt (top-down operator precedence) parser.

Each token type may have a *prefix* parselet, used when the token starts an
expression, and an *infix* parselet with a precedence, used when the token
follows a complete left operand. The grammar itself is registered by
:mod:`taylorkit.parser.expression_parser`.

See http://journal.stuffwithstuff.com/2011/03/19/pratt-parsers-expression-parsing-made-easy/
for an introduction to the technique.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum

from taylorkit.parser.errors import ErrorMsg, ParserError
from taylorkit.parser.nodes import BinaryOperator, Node, PrefixOperator
from taylorkit.parser.parser_context import ParserContext
from taylorkit.parser.tokenizer import Token, TokenType

__all__ = [
    "Precedence",
    "PrefixParse",
    "InfixParse",
    "Parselet",
    "ExpressionParser",
]


class Precedence(IntEnum):
    """Binding power of operators, weakest first."""

    LOWEST = 0
    SUM = 1
    PRODUCT = 2
    EXPONENT = 3
    PREFIX = 4
    CALL = 5


PrefixParse = Callable[["ExpressionParser", Token], Node]
InfixParse = Callable[["ExpressionParser", Node, Token], Node]


@dataclass
class Parselet:
    """The parsing rules attached to one token type."""

    prefix_parse: PrefixParse | None = None
    infix_precedence: Precedence | None = None
    infix_parse: InfixParse | None = None


class ExpressionParser:
    """Parses expressions from a :class:`ParserContext` using registered parselets."""

    def __init__(self, ctx: ParserContext):
        self._ctx = ctx
        self._parselets: dict[TokenType, Parselet] = {}

    def get_parselet(self, token_type: TokenType) -> Parselet:
        return self._parselets.setdefault(token_type, Parselet())

    def register_prefix(self, token_type: TokenType, prefix_parse: PrefixParse) -> None:
        self.get_parselet(token_type).prefix_parse = prefix_parse

    def register_infix(
        self,
        token_type: TokenType,
        precedence: Precedence,
        infix_parse: InfixParse,
    ) -> None:
        parselet = self.get_parselet(token_type)
        parselet.infix_precedence = precedence
        parselet.infix_parse = infix_parse

    def register_terminal(self, token_type: TokenType, create_node: Callable[[Token], Node]) -> None:
        """Registers a single-token expression such as a literal or a name."""
        self.register_prefix(token_type, lambda parser, token: create_node(token))

    def register_prefix_operator(self, token_type: TokenType) -> None:
        """Registers a unary operator binding tighter than any binary operator."""

        def parse(parser: ExpressionParser, token: Token) -> Node:
            operand = parser.parse_expression(Precedence.PREFIX)
            if operand is None:
                # Most likely the user is about to type the operand.
                raise ParserError(ErrorMsg.operator_missing_right_operand(token.value))
            return PrefixOperator(token=token, argument=operand)

        self.register_prefix(token_type, parse)

    def register_binary_operator(self, token_type: TokenType, precedence: Precedence) -> None:
        """Registers a left-associative binary operator."""

        def parse(parser: ExpressionParser, left: Node, token: Token) -> Node:
            right = parser.parse_expression(precedence)
            if right is None:
                raise ParserError(ErrorMsg.operator_missing_right_operand(token.value))
            return BinaryOperator(token=token, first_argument=left, second_argument=right)

        self.register_infix(token_type, precedence, parse)

    def peek(self) -> Token:
        return self._ctx.peek()

    def consume_if_present(self, token_type: TokenType) -> bool:
        return self._ctx.consume_if_type(token_type) is not None

    def _peek_precedence(self) -> Precedence:
        parselet = self._parselets.get(self._ctx.peek().type)
        if parselet is None or parselet.infix_precedence is None:
            return Precedence.LOWEST
        return parselet.infix_precedence

    def parse_expression(self, precedence: Precedence) -> Node | None:
        """Parses the longest expression whose operators bind tighter than ``precedence``.

        Args:
            precedence: Binding power of the operator on the left, or
                ``Precedence.LOWEST`` at the top level.

        Returns:
            The parsed node, or None if the next token cannot start an
            expression (nothing is consumed in that case).

        Raises:
            ParserError: If the input is malformed.
        """
        token = self._ctx.peek()
        parselet = self._parselets.get(token.type)
        if parselet is None or parselet.prefix_parse is None:
            return None

        self._ctx.next()
        left = parselet.prefix_parse(self, token)

        while precedence < self._peek_precedence():
            token = self._ctx.next()
            infix = self._parselets[token.type].infix_parse
            if infix is None:
                raise RuntimeError(f"No infix parselet registered for {token.type.name}.")
            left = infix(self, left, token)

        return left
