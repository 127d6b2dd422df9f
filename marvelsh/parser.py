"""Turning a token stream into a pipeline of commands."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .quotes import token_content
from .tokens import REDIRECTION_TYPES, WORD_TYPES, Token, TokenType

__all__ = ["Redirection", "Command", "strip_double_quotes", "parse_tokens"]

_REDIRECTION_KINDS = {
    TokenType.INPUT: "<",
    TokenType.OUTPUT: ">",
    TokenType.APPEND: ">>",
    TokenType.HEREDOC: "<<",
}


@dataclass
class Redirection:
    """A redirection: its operator (``<``, ``>``, ``>>`` or ``<<``) and target."""

    kind: str
    target: str


@dataclass
class Command:
    """One simple command of a pipeline.

    ``heredoc`` holds the collected here-document text once it has been read.
    """

    args: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)
    heredoc: str | None = None

    @property
    def has_heredoc(self) -> bool:
        """Whether a here-document has been read for this command."""
        return self.heredoc is not None


def strip_double_quotes(text: str) -> str:
    """Remove one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def _redirection_target(kind: str, value: str) -> str:
    if kind == "<<":
        return value
    return strip_double_quotes(value)


def parse_tokens(tokens: Iterable[Token]) -> list[Command]:
    """Group ``tokens`` into commands separated by pipes.

    There is always at least one command. A redirection operator takes the
    following token as its target; one with nothing after it is dropped.
    """
    commands = [Command()]
    stream = iter(tokens)
    for token in stream:
        current = commands[-1]
        if token.type in WORD_TYPES:
            current.args.append(strip_double_quotes(token_content(token)))
        elif token.type in REDIRECTION_TYPES:
            target = next(stream, None)
            if target is not None:
                kind = _REDIRECTION_KINDS[token.type]
                current.redirections.append(
                    Redirection(kind, _redirection_target(kind, target.value))
                )
        elif token.type is TokenType.PIPE:
            commands.append(Command())
    return commands