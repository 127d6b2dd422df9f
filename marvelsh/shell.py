"""The interactive read-evaluate loop of the shell."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

from .builtins import ShellExit
from .environment import Environment, ShellState
from .executor import execute
from .expander import expand_tokens
from .heredoc import HeredocInterrupted, process_heredocs
from .parser import parse_tokens
from .quotes import manage_quotes
from .syntax import ShellSyntaxError, check_syntax
from .tokens import tokenize

__all__ = ["PROMPT", "process_input", "repl", "main"]

PROMPT = "marvel$ "
_INTERRUPTED_STATUS = 130

ReadLine = Callable[[str], "str | None"]


def _default_read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def process_input(
    line: str,
    state: ShellState,
    read_line: ReadLine | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Parse and run one command line; return the resulting status.

    Syntax errors are reported on ``out`` and leave the status unchanged.
    ``read_line`` supplies here-document lines.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    tokens = tokenize(line)
    try:
        if not check_syntax(tokens):
            return state.last_status
    except ShellSyntaxError as exc:
        print(exc, file=out)
        return state.last_status
    tokens = expand_tokens(tokens, state.env, state.last_status)
    tokens = manage_quotes(tokens)
    commands = parse_tokens(tokens)
    try:
        process_heredocs(commands, state, read_line, err)
    except HeredocInterrupted:
        state.last_status = HeredocInterrupted.status
        return state.last_status
    execute(commands, state, out, err)
    return state.last_status


def _interrupted(state: ShellState, out: TextIO) -> None:
    state.last_status = _INTERRUPTED_STATUS
    out.write("\n")
    out.flush()


def repl(
    state: ShellState,
    read_line: ReadLine | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Read and run lines until end of input or ``exit``; return the exit status."""
    read_line = read_line or _default_read_line
    out = out or sys.stdout
    err = err or sys.stderr
    while True:
        try:
            line = read_line(PROMPT)
        except KeyboardInterrupt:
            _interrupted(state, out)
            continue
        except EOFError:
            line = None
        if line is None:
            print("exit", file=out)
            state.last_status = 0
            return 0
        try:
            process_input(line, state, read_line, out, err)
        except ShellExit as exc:
            return exc.status & 0xFF
        except KeyboardInterrupt:
            _interrupted(state, out)


def _ignore_sigquit():
    if not hasattr(signal, "SIGQUIT"):
        return None
    try:
        return signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    except ValueError:
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell on the process environment.

    Command-line arguments are ignored.
    """
    with contextlib.suppress(ImportError):
        import readline  # noqa: F401  (line editing and history for input())
    state = ShellState(
        Environment.from_strings(f"{key}={value}" for key, value in os.environ.items())
    )
    previous = _ignore_sigquit()
    try:
        return repl(state)
    finally:
        if previous is not None:
            with contextlib.suppress(ValueError):
                signal.signal(signal.SIGQUIT, previous)


if __name__ == "__main__":
    sys.exit(main())