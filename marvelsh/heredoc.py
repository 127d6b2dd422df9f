"""Reading here-documents for ``<<`` redirections."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from typing import TextIO

from .environment import Environment, ShellState
from .parser import Command

__all__ = [
    "HeredocInterrupted",
    "is_quoted",
    "strip_quotes",
    "expand_line",
    "read_heredoc",
    "process_heredocs",
]

PROMPT = "> "
INTERRUPTED_STATUS = 130

ReadLine = Callable[[str], "str | None"]


class HeredocInterrupted(Exception):
    """Raised when reading a here-document is interrupted."""

    status = INTERRUPTED_STATUS


def _default_read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def is_quoted(text: str | None) -> bool:
    """Return True if ``text`` is wrapped in a pair of matching quotes."""
    if not text or len(text) < 2:
        return False
    return text[0] == text[-1] and text[0] in "'\""


def strip_quotes(text: str) -> str:
    """Return ``text`` without its surrounding quotes, if it has them."""
    return text[1:-1] if is_quoted(text) else text


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def expand_line(line: str, env: Environment, last_status: int = 0) -> str:
    """Expand ``$NAME`` and ``$?`` in one here-document line.

    A ``$`` at the end of the line stays; a ``$`` before anything that is
    not a name character expands to nothing.
    """
    parts: list[str] = []
    pos = 0
    length = len(line)
    while pos < length:
        char = line[pos]
        if char == "$" and pos + 1 < length:
            pos += 1
            if line[pos] == "?":
                parts.append(str(last_status))
                pos += 1
                continue
            start = pos
            while pos < length and _is_name_char(line[pos]):
                pos += 1
            parts.append(env.get(line[start:pos]) or "")
        else:
            parts.append(char)
            pos += 1
    return "".join(parts)


def read_heredoc(
    delimiter: str,
    state: ShellState,
    read_line: ReadLine | None = None,
    err: TextIO | None = None,
) -> str:
    """Collect lines until ``delimiter`` and return them with newlines.

    A quoted delimiter turns variable expansion off. End of input ends the
    document with a warning; an interrupt raises HeredocInterrupted.
    """
    read_line = read_line or _default_read_line
    err = err or sys.stderr
    delim = strip_quotes(delimiter)
    expand = not is_quoted(delimiter)
    lines: list[str] = []
    try:
        while True:
            try:
                line = read_line(PROMPT)
            except EOFError:
                line = None
            if line is None:
                err.write(
                    "minishell: warning: here-document delimited by "
                    f"end-of-file (wanted `{delim}`)\n"
                )
                break
            if line == delim:
                break
            if expand:
                line = expand_line(line, state.env, state.last_status)
            lines.append(line + "\n")
    except KeyboardInterrupt as exc:
        raise HeredocInterrupted() from exc
    return "".join(lines)


def process_heredocs(
    commands: Iterable[Command],
    state: ShellState,
    read_line: ReadLine | None = None,
    err: TextIO | None = None,
) -> None:
    """Read every here-document of ``commands`` in order.

    Each command keeps the text of its last ``<<``. On interrupt the last
    status becomes 130 and HeredocInterrupted is raised.
    """
    for command in commands:
        command.heredoc = None
        for redirection in command.redirections:
            if redirection.kind != "<<":
                continue
            try:
                command.heredoc = read_heredoc(redirection.target, state, read_line, err)
            except HeredocInterrupted:
                state.last_status = INTERRUPTED_STATUS
                raise