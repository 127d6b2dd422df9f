"""Variable expansion on tokens."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import replace

from .environment import Environment
from .tokens import Token, TokenType

__all__ = [
    "expand_token_value",
    "expand_tokens",
    "split_words",
    "needs_word_splitting",
]

_QUOTE_CHARS = "\"'"
_EXPANDED_TYPES = frozenset({TokenType.WORD, TokenType.DQUOTE})
_SPLIT = re.compile(r"[ \t\n]+")


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def _expand_dollar(
    text: str, pos: int, env: Environment, last_status: int
) -> tuple[str, int]:
    """Expand the ``$`` at ``pos``; return the text and the next position."""
    start = pos + 1
    if start >= len(text):
        return "$", start
    char = text[start]
    if char == "?":
        return str(last_status), start + 1
    if not _is_name_char(char):
        return "$", start
    end = start
    while end < len(text) and _is_name_char(text[end]):
        end += 1
    value = env.get(text[start:end])
    return value or "", end


def expand_token_value(value: str, env: Environment, last_status: int = 0) -> str:
    """Expand ``$NAME`` and ``$?`` in ``value`` and drop the quote characters.

    Text inside single quotes is not expanded.
    """
    parts: list[str] = []
    quote: str | None = None
    pos = 0
    while pos < len(value):
        char = value[pos]
        if quote is None and char in _QUOTE_CHARS:
            quote = char
            pos += 1
        elif quote is not None and char == quote:
            quote = None
            pos += 1
        elif char == "$" and quote != "'":
            piece, pos = _expand_dollar(value, pos, env, last_status)
            parts.append(piece)
        else:
            parts.append(char)
            pos += 1
    return "".join(parts)


def expand_tokens(
    tokens: Iterable[Token], env: Environment, last_status: int = 0
) -> list[Token]:
    """Return a copy of ``tokens`` with words and double-quoted strings expanded.

    Single-quoted strings and the delimiter after ``<<`` are left alone.
    """
    result: list[Token] = []
    skip_next = False
    for token in tokens:
        if skip_next:
            skip_next = False
            result.append(replace(token))
        elif token.type is TokenType.HEREDOC:
            skip_next = True
            result.append(replace(token))
        elif token.type in _EXPANDED_TYPES:
            result.append(
                replace(token, value=expand_token_value(token.value, env, last_status))
            )
        else:
            result.append(replace(token))
    return result


def split_words(text: str | None) -> list[str]:
    """Split ``text`` on spaces, tabs and newlines, dropping empty fields."""
    if not text:
        return []
    return [word for word in _SPLIT.split(text) if word]


def needs_word_splitting(text: str | None) -> bool:
    """Return True if ``text`` holds a space or a tab."""
    return bool(text) and (" " in text or "\t" in text)