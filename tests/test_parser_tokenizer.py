"""Tests for taylorkit.parser.tokenizer."""

import pytest

from taylorkit.parser.errors import ErrorMsg, ParserError
from taylorkit.parser.tokenizer import Token, TokenType, tokenize


def _values(source):
    return [t.value for t in tokenize(source)]


@pytest.mark.parametrize(
    "source, expected",
    [
        ("a", ["a"]),
        ("1", ["1"]),
        ("1.7834", ["1.7834"]),
        (".7", [".7"]),
        ("a + b", ["a", "+", "b"]),
        ("a+b", ["a", "+", "b"]),
        ("(a + b)", ["(", "a", "+", "b", ")"]),
        ("and ^ bat / cat - dat", ["and", "^", "bat", "/", "cat", "-", "dat"]),
        ("  x\t*\r\ny ", ["x", "*", "y"]),
    ],
)
def test_tokenize_simple_expressions(source, expected):
    """Tests that simple expressions split into the expected lexemes."""
    assert _values(source) == expected


@pytest.mark.parametrize(
    "source, expected",
    [
        ("a b", ["a", "*", "b"]),
        ("(a) (b)", ["(", "a", ")", "*", "(", "b", ")"]),
        ("3 4", ["3", "*", "4"]),
        ("3. .4", ["3.", "*", ".4"]),
        ("(a)b", ["(", "a", ")", "*", "b"]),
        ("2x", ["2", "*", "x"]),
        ("x(y)", ["x", "*", "(", "y", ")"]),
    ],
)
def test_tokenize_inserts_implicit_multiplications(source, expected):
    """Tests that adjacent operands are joined by a multiplication."""
    assert _values(source) == expected


@pytest.mark.parametrize("name", ["sin", "cos", "ln", "log", "sqrt", "atan"])
def test_no_multiplication_between_function_and_arguments(name):
    """Tests that a supported function name followed by '(' stays a call."""
    assert _values(f"{name}(x)") == [name, "(", "x", ")"]


def test_token_types():
    """Tests the type assigned to each kind of lexeme."""
    tokens = tokenize("2 + 1.5 - x * (y / z) ^ .5")
    assert [t.type for t in tokens] == [
        TokenType.INT_LITERAL,
        TokenType.PLUS,
        TokenType.FLOAT_LITERAL,
        TokenType.MINUS,
        TokenType.IDENTIFIER,
        TokenType.MULTIPLY,
        TokenType.LEFT_PAREN,
        TokenType.IDENTIFIER,
        TokenType.DIVIDE,
        TokenType.IDENTIFIER,
        TokenType.RIGHT_PAREN,
        TokenType.POW,
        TokenType.FLOAT_LITERAL,
    ]


def test_implicit_multiplication_token():
    """Tests that inserted multiplications are ordinary MULTIPLY tokens."""
    assert tokenize("a b")[1] == Token(TokenType.MULTIPLY, "*")


def test_empty_source_gives_no_tokens():
    """Tests that an empty source tokenizes to nothing."""
    assert tokenize("") == []
    assert tokenize("   ") == []


@pytest.mark.parametrize(
    "source, bad",
    [
        ("c.d", "."),
        ("[a]", "["),
        ("3~", "~"),
        ("x!", "!"),
        ("x_1", "_"),
    ],
)
def test_tokenize_rejects_invalid_characters(source, bad):
    """Tests that an unknown character raises a ParserError naming it."""
    with pytest.raises(ParserError) as excinfo:
        tokenize(source)
    assert str(excinfo.value) == ErrorMsg.invalid_character(bad)


def test_name_before_parenthesis_is_flagged():
    """Tests that a non-function name written before '(' is marked."""
    tokens = tokenize("sinh(x) + y (z) + sin(x) + w z")
    flagged = {t.value for t in tokens if t.followed_by_paren}
    assert flagged == {"sinh", "y"}
    assert tokens[1] == Token(TokenType.MULTIPLY, "*")
