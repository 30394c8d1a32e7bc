"""Syntax tree produced by the expression parser.

Nodes are immutable. Every node keeps the token it was built from so that
error messages and debug output can quote the source.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from taylorkit.parser.tokenizer import Token

__all__ = [
    "FunctionCall",
    "Identifier",
    "Literal",
    "PrefixOperator",
    "BinaryOperator",
    "Group",
    "Node",
    "children",
    "to_debug_string",
    "for_each_node",
]


@dataclass(frozen=True)
class FunctionCall:
    """``function(argument)``; ``function`` is normally an :class:`Identifier`."""

    function: Node
    argument: Node


@dataclass(frozen=True)
class Identifier:
    token: Token


@dataclass(frozen=True)
class Literal:
    token: Token


@dataclass(frozen=True)
class PrefixOperator:
    token: Token
    argument: Node


@dataclass(frozen=True)
class BinaryOperator:
    token: Token
    first_argument: Node
    second_argument: Node


@dataclass(frozen=True)
class Group:
    """A parenthesised subexpression."""

    argument: Node


Node: TypeAlias = FunctionCall | Identifier | Literal | PrefixOperator | BinaryOperator | Group


def children(node: Node) -> tuple[Node, ...]:
    """Returns the direct subexpressions of ``node``, left to right."""
    match node:
        case FunctionCall(function=function, argument=argument):
            return (function, argument)
        case BinaryOperator(first_argument=first, second_argument=second):
            return (first, second)
        case PrefixOperator(argument=argument) | Group(argument=argument):
            return (argument,)
        case Identifier() | Literal():
            return ()
    raise TypeError(f"Unknown node type {type(node).__name__}.")


def to_debug_string(node: Node) -> str:
    """Renders ``node`` with every subexpression in square brackets.

    Examples:
        >>> from taylorkit.parser.expression_parser import parse_expression
        >>> to_debug_string(parse_expression("x + 2 y").expression)
        '[[x] + [[2] * [y]]]'
    """
    match node:
        case BinaryOperator(token=token, first_argument=first, second_argument=second):
            return f"[{to_debug_string(first)} {token.value} {to_debug_string(second)}]"
        case FunctionCall(function=function, argument=argument):
            name = function.token.value if isinstance(function, Identifier) else to_debug_string(function)
            return f"[{name}({to_debug_string(argument)})]"
        case Identifier(token=token) | Literal(token=token):
            return f"[{token.value}]"
        case PrefixOperator(token=token, argument=argument):
            return f"[{token.value} {to_debug_string(argument)}]"
        case Group(argument=argument):
            return f"[( {to_debug_string(argument)} )]"
    raise TypeError(f"Unknown node type {type(node).__name__}.")


def for_each_node(node: Node, callback: Callable[[Node], None]) -> None:
    """Calls ``callback`` on every node of the tree, children before parents."""
    for child in children(node):
        for_each_node(child, callback)
    callback(node)
