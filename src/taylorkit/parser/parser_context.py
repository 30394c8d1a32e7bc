"""Cursor over a token list used by the parser."""

from __future__ import annotations

from collections.abc import Sequence

from taylorkit.parser.tokenizer import EOF_TOKEN, Token, TokenType

__all__ = ["ParserContext"]


class ParserContext:
    """Reads tokens one at a time. Past the end it keeps returning an EOF token."""

    def __init__(self, tokens: Sequence[Token]):
        self._tokens = tuple(tokens)
        self._pos = 0

    def has_more_tokens(self) -> bool:
        return self._pos < len(self._tokens)

    def peek(self) -> Token:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return EOF_TOKEN

    def next(self) -> Token:
        token = self.peek()
        if self._pos < len(self._tokens):
            self._pos += 1
        return token

    def consume_if_type(self, token_type: TokenType) -> Token | None:
        """Consumes and returns the next token if it has type ``token_type``."""
        if self.peek().type is token_type:
            return self.next()
        return None
