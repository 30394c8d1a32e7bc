"""Exceptions and user-facing messages for expression errors."""

from __future__ import annotations

__all__ = [
    "ExpressionError",
    "ParserError",
    "ErrorMsg",
]


class ExpressionError(ValueError):
    """Base class for problems with a user-written expression.

    The message is meant to be shown to the person who typed the
    expression, so it is phrased for them and not for a developer.
    """


class ParserError(ExpressionError):
    """Raised by the tokenizer and the parser on malformed input."""


class ErrorMsg:
    """Messages describing why an expression could not be used."""

    GENERIC_FAILURE = "Couldn't parse that expression"
    EMPTY_PARENS = (
        "The expression contains an empty set of parentheses like (); "
        "this is not valid syntax"
    )
    MISSING_RIGHT_PAREN = "The expression is missing a right parenthesis"
    NON_IDENTIFIER_FUNCTION_NAME = (
        "It looks like you're trying to call something that isn't a function"
    )

    @staticmethod
    def invalid_argument(function_name: str) -> str:
        return (
            f"Couldn't parse an argument to the function {function_name}. "
            "Perhaps you're missing a closing parenthesis."
        )

    @staticmethod
    def operator_missing_right_operand(operator: str) -> str:
        return f"We expected something after the operator {operator}"

    @staticmethod
    def invalid_character(character: str) -> str:
        return f"{character} isn't a valid character"

    @staticmethod
    def unknown_identifier(name: str) -> str:
        return f"{name} isn't a variable of this expression"

    @staticmethod
    def unsupported_function(name: str) -> str:
        return f"{name} isn't a supported function"
