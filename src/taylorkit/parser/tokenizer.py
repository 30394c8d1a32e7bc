"""Splits an expression into tokens.

Besides recognising numbers, names, operators and parentheses, the
tokenizer inserts the multiplications people leave out when writing maths
by hand, so ``2x``, ``(a)b`` and ``x y`` mean ``2*x``, ``(a)*b`` and
``x*y``. No multiplication is inserted between a function name and its
argument list: ``sin(x)`` stays a call.

Examples:
    >>> from taylorkit.parser.tokenizer import tokenize
    >>> [t.value for t in tokenize("2x + sin(y)")]
    ['2', '*', 'x', '+', 'sin', '(', 'y', ')']
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum, auto

from taylorkit.parser.errors import ErrorMsg, ParserError
from taylorkit.series import SUPPORTED_FUNCTIONS

__all__ = [
    "TokenType",
    "Token",
    "tokenize",
]


class TokenType(Enum):
    """Kinds of tokens."""

    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    POW = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    FLOAT_LITERAL = auto()
    INT_LITERAL = auto()
    IDENTIFIER = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A token and the source text it was read from.

    ``followed_by_paren`` is set on a name that is not a supported function
    but is written directly before ``(``, as in ``sinh(x)``. Such a name is
    multiplied with the group like any other value; the flag only lets the
    compiler report it as an unsupported function when it is not a variable.
    It does not take part in comparisons.
    """

    type: TokenType
    value: str
    followed_by_paren: bool = field(default=False, compare=False)


EOF_TOKEN = Token(TokenType.EOF, "")

# Alternatives are tried in order, so longer number forms come first.
_TOKEN_RE = re.compile(
    r"[0-9]+\.[0-9]+"
    r"|[0-9]+\."
    r"|\.[0-9]+"
    r"|[0-9]+"
    r"|[ \t\r\n]+"
    r"|[-+*/^]"
    r"|[a-zA-Z]+"
    r"|[()]"
)

_OPERATORS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "^": TokenType.POW,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
}

_STARTS_EXPRESSION = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.INT_LITERAL,
        TokenType.FLOAT_LITERAL,
        TokenType.LEFT_PAREN,
    }
)


def _starts_expression(token: Token) -> bool:
    return token.type in _STARTS_EXPRESSION


def _ends_expression(token: Token) -> bool:
    if token.type is TokenType.IDENTIFIER:
        return token.value not in SUPPORTED_FUNCTIONS
    return token.type in (
        TokenType.INT_LITERAL,
        TokenType.FLOAT_LITERAL,
        TokenType.RIGHT_PAREN,
    )


def _classify(text: str) -> Token | None:
    """Builds the token for a matched lexeme, or None for whitespace."""
    first = text[0]
    if first.isspace():
        return None
    if first.isdigit() or first == ".":
        kind = TokenType.FLOAT_LITERAL if "." in text else TokenType.INT_LITERAL
        return Token(kind, text)
    if first.isalpha():
        return Token(TokenType.IDENTIFIER, text)
    return Token(_OPERATORS[first], text)


def _insert_implicit_multiplications(tokens: list[Token]) -> list[Token]:
    result: list[Token] = []
    for token in tokens:
        if result and _ends_expression(result[-1]) and _starts_expression(token):
            if result[-1].type is TokenType.IDENTIFIER and token.type is TokenType.LEFT_PAREN:
                result[-1] = replace(result[-1], followed_by_paren=True)
            result.append(Token(TokenType.MULTIPLY, "*"))
        result.append(token)
    return result


def tokenize(source: str) -> list[Token]:
    """Converts ``source`` into a list of tokens.

    Args:
        source: Expression text.

    Returns:
        The tokens, whitespace removed and implicit multiplications added.

    Raises:
        ParserError: If ``source`` contains a character that cannot start
            any token.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise ParserError(ErrorMsg.invalid_character(source[pos]))
        token = _classify(match.group())
        if token is not None:
            tokens.append(token)
        pos = match.end()
    return _insert_implicit_multiplications(tokens)
