"""Tokenizer and parser for the expression language."""

from .errors import ErrorMsg, ExpressionError, ParserError
from .expression_parser import ParsedExpression, parse_expression
from .nodes import to_debug_string
from .tokenizer import Token, TokenType, tokenize

__all__ = [
    "ErrorMsg",
    "ExpressionError",
    "ParserError",
    "ParsedExpression",
    "parse_expression",
    "to_debug_string",
    "Token",
    "TokenType",
    "tokenize",
]
