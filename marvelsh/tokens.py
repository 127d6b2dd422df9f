"""Splitting a command line into shell tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

__all__ = [
    "TokenType",
    "Token",
    "WORD_TYPES",
    "REDIRECTION_TYPES",
    "tokenize",
    "is_operator_char",
    "is_space",
]


class TokenType(Enum):
    """Kinds of token produced by the tokenizer and later passes."""

    WORD = auto()
    PIPE = auto()
    INPUT = auto()
    OUTPUT = auto()
    APPEND = auto()
    HEREDOC = auto()
    SQUOTE = auto()
    DQUOTE = auto()
    REMOVED = auto()


WORD_TYPES = frozenset({TokenType.WORD, TokenType.SQUOTE, TokenType.DQUOTE})
REDIRECTION_TYPES = frozenset(
    {TokenType.INPUT, TokenType.OUTPUT, TokenType.APPEND, TokenType.HEREDOC}
)


@dataclass
class Token:
    """One token of a command line.

    ``has_space_before`` tells whether whitespace (or the start of the line)
    separates this token from the previous one; adjacent word and quote
    tokens are later joined into a single argument.
    """

    type: TokenType
    value: str
    has_space_before: bool = True


_SPACES = frozenset(" \t\n")
_OPERATOR_CHARS = frozenset("|<>")
_QUOTES = {'"': TokenType.DQUOTE, "'": TokenType.SQUOTE}

# Longer operators first so that "<<" wins over "<".
_OPERATORS = (
    ("<<", TokenType.HEREDOC),
    (">>", TokenType.APPEND),
    ("|", TokenType.PIPE),
    ("<", TokenType.INPUT),
    (">", TokenType.OUTPUT),
)

_WORD = re.compile(r"""[^ \t\n|<>"']+""")


def is_space(char: str) -> bool:
    """Return True for the characters that separate tokens."""
    return char in _SPACES


def is_operator_char(char: str) -> bool:
    """Return True for characters that start a pipe or redirection."""
    return char in _OPERATOR_CHARS


def _read_operator(line: str, pos: int) -> tuple[TokenType, str]:
    for text, token_type in _OPERATORS:
        if line.startswith(text, pos):
            return token_type, text
    raise ValueError(f"no operator at position {pos}")


def _read_quoted(line: str, pos: int) -> tuple[TokenType, str]:
    quote = line[pos]
    end = line.find(quote, pos + 1)
    # An unclosed quote swallows the rest of the line.
    stop = len(line) if end == -1 else end + 1
    return _QUOTES[quote], line[pos:stop]


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into tokens.

    Quoted strings keep their quotes; unquoted words stop at whitespace,
    operators and quotes. Variables are left for the expander.
    """
    tokens: list[Token] = []
    pos = 0
    spaced = True
    length = len(line)
    while pos < length:
        char = line[pos]
        if is_space(char):
            while pos < length and is_space(line[pos]):
                pos += 1
            spaced = True
            continue
        if is_operator_char(char):
            token_type, text = _read_operator(line, pos)
        elif char in _QUOTES:
            token_type, text = _read_quoted(line, pos)
        else:
            match = _WORD.match(line, pos)
            token_type, text = TokenType.WORD, match.group()
        tokens.append(Token(token_type, text, spaced))
        pos += len(text)
        spaced = False
    return tokens