"""Syntax checks on token streams and error message helpers."""

from __future__ import annotations

from collections.abc import Sequence

from .tokens import REDIRECTION_TYPES, WORD_TYPES, Token, TokenType

__all__ = ["ShellSyntaxError", "check_syntax", "not_found_message"]


class ShellSyntaxError(ValueError):
    """Raised when a token stream cannot form a command line."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"bash: syntax error near unexpected token `{token}'")


def check_syntax(tokens: Sequence[Token]) -> bool:
    """Validate pipes and redirections in ``tokens``.

    Returns False when there is nothing to run and True when the tokens
    are well formed; raises ShellSyntaxError otherwise.
    """
    if not tokens:
        return False
    if tokens[0].type is TokenType.PIPE:
        raise ShellSyntaxError("|")
    followers = list(tokens[1:]) + [None]
    for current, following in zip(tokens, followers):
        if current.type is TokenType.PIPE:
            if following is None or following.type is TokenType.PIPE:
                raise ShellSyntaxError("|")
        elif current.type in REDIRECTION_TYPES:
            if following is None or following.type not in WORD_TYPES:
                raise ShellSyntaxError(current.value)
    return True


def not_found_message(command: str) -> str:
    """Return the diagnostic for a command that could not be found."""
    if "/" in command:
        return f"minishell: {command}: No such file or directory"
    return f"minishell: {command}: command not found"