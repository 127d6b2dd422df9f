"""Removing quotes and joining adjacent pieces of one argument."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from .tokens import WORD_TYPES, Token, TokenType

__all__ = ["token_content", "manage_quotes"]

_QUOTED_TYPES = frozenset({TokenType.DQUOTE, TokenType.SQUOTE})


def _strip_outer_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def token_content(token: Token) -> str:
    """Return the token's text without a matching pair of outer quotes.

    Only quote tokens are stripped; words come back as they are.
    """
    if token.type in _QUOTED_TYPES:
        return _strip_outer_quotes(token.value)
    return token.value


def manage_quotes(tokens: Iterable[Token]) -> list[Token]:
    """Strip quotes and join word pieces that touch each other.

    A run of word and quote tokens with no whitespace between them becomes
    one word token. The first token of the line is passed through as it is.
    """
    tokens = list(tokens)
    if not tokens:
        return []
    result = [replace(tokens[0])]
    pos = 1
    while pos < len(tokens):
        current = tokens[pos]
        if current.type not in WORD_TYPES:
            result.append(replace(current))
            pos += 1
            continue
        end = pos + 1
        while (
            end < len(tokens)
            and tokens[end].type in WORD_TYPES
            and not tokens[end].has_space_before
        ):
            end += 1
        if end == pos + 1:
            if current.type in _QUOTED_TYPES:
                result.append(
                    replace(
                        current,
                        type=TokenType.WORD,
                        value=_strip_outer_quotes(current.value),
                    )
                )
            else:
                result.append(replace(current))
        else:
            joined = "".join(token_content(piece) for piece in tokens[pos:end])
            result.append(replace(current, type=TokenType.WORD, value=joined))
        pos = end
    return result