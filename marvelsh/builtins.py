"""Commands the shell runs itself, without starting another program."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

from .environment import ShellState, export_argument

__all__ = [
    "ShellExit",
    "BUILTIN_NAMES",
    "is_builtin",
    "run_builtin",
    "echo",
    "cd",
    "pwd",
    "print_env",
    "export",
    "unset",
    "exit_builtin",
    "is_number",
    "parse_int",
]

BUILTIN_NAMES = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_ATOI_SPACES = frozenset(" \t\n\v\f\r")


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"exit {status}")


def is_builtin(name: str | None) -> bool:
    """Return True if ``name`` is one of the shell's own commands."""
    return name in BUILTIN_NAMES


def _is_echo_flag(arg: str) -> bool:
    return arg.startswith("-") and all(char == "n" for char in arg[1:])


def echo(args: Sequence[str], state: ShellState, out: TextIO | None = None) -> int:
    """Print the arguments separated by spaces; ``-n`` drops the newline."""
    out = out or sys.stdout
    words = list(args[1:])
    newline = True
    while words and _is_echo_flag(words[0]):
        newline = False
        words.pop(0)
    out.write(" ".join(words))
    if newline:
        out.write("\n")
    state.last_status = 0
    return 0


def _cd_target(args: Sequence[str], state: ShellState) -> tuple[str | None, str]:
    """Return the directory to change to and the variable it came from."""
    env = state.env
    if len(args) < 2 or args[1] == "~":
        return env.get("HOME"), "HOME"
    arg = args[1]
    if arg == "-":
        return env.get("OLDPWD"), "OLDPWD"
    if arg.startswith("~"):
        home = env.get("HOME")
        return (home + arg[1:] if home is not None else arg), "HOME"
    return arg, ""


def _getcwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def cd(args: Sequence[str], state: ShellState, err: TextIO | None = None) -> int:
    """Change the working directory and update ``OLDPWD`` and ``PWD``."""
    err = err or sys.stderr
    if len(args) > 2:
        print("minishell: cd: too many arguments", file=err)
        state.last_status = 1
        return 1
    old_cwd = _getcwd()
    target, source = _cd_target(args, state)
    if target is None:
        print(f"minishell: cd: {source} not set", file=err)
        state.last_status = 1
        return 1
    try:
        os.chdir(target)
    except OSError as exc:
        print(f"minishell: cd: {exc.strerror}", file=err)
        state.last_status = 1
        return 1
    env = state.env
    if "OLDPWD" in env:
        env.set("OLDPWD", old_cwd)
    if "PWD" in env:
        env.set("PWD", _getcwd())
    state.last_status = 0
    return 0


def pwd(
    args: Sequence[str],
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Print the ``PWD`` variable."""
    out = out or sys.stdout
    err = err or sys.stderr
    if len(args) > 1:
        state.last_status = 1
        print("minishell: pwd: too many arguments", file=err)
    if "PWD" in state.env:
        value = state.env.get("PWD")
        print(value if value is not None else "", file=out)
        state.last_status = 0
    return state.last_status


def print_env(state: ShellState, out: TextIO | None = None) -> int:
    """Print the variables; short or missing values show the name alone."""
    out = out or sys.stdout
    status = 1
    for key, value in state.env:
        if value is not None and len(value) > 1:
            print(f"{key}={value}", file=out)
            status = 0
        else:
            print(key, file=out)
    state.last_status = status
    return status


def export(
    args: Sequence[str],
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Set variables, or list them all sorted when given no arguments."""
    out = out or sys.stdout
    err = err or sys.stderr
    if len(args) < 2:
        for entry in state.env.sorted_strings():
            print(f"declare -x {entry}", file=out)
        state.last_status = 0
        return 0
    status = 0
    for arg in args[1:]:
        try:
            export_argument(state.env, arg)
        except ValueError as exc:
            print(exc, file=err)
            status = 1
    state.last_status = status
    return status


def unset(args: Sequence[str], state: ShellState) -> int:
    """Remove the named variables; unknown names are ignored."""
    for name in args[1:]:
        state.env.remove(name)
    state.last_status = 0
    return 0


def is_number(text: str | None) -> bool:
    """Return True if ``text`` is a signed integer, possibly followed by blanks."""
    if not text:
        return False
    body = text[1:] if text[0] in "+-" else text
    if not body:
        return False
    pos = 0
    while pos < len(body):
        char = body[pos]
        if "0" <= char <= "9":
            pos += 1
        elif char in " \t":
            while pos < len(body) and body[pos] in " \t":
                pos += 1
            break
        else:
            return False
    return pos == len(body)


def parse_int(text: str) -> int:
    """Read a leading integer as a 32-bit signed value; no digits gives 0."""
    pos = 0
    while pos < len(text) and text[pos] in _ATOI_SPACES:
        pos += 1
    sign = 1
    if pos < len(text) and text[pos] in "+-":
        if text[pos] == "-":
            sign = -1
        pos += 1
    result = 0
    while pos < len(text) and "0" <= text[pos] <= "9":
        result = result * 10 + int(text[pos])
        pos += 1
    value = result * sign
    return (value + 2**31) % 2**32 - 2**31


def exit_builtin(
    args: Sequence[str],
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Leave the shell by raising ShellExit.

    With more than one numeric argument nothing is left and 1 is returned.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    print("exit", file=out)
    if len(args) > 1 and not is_number(args[1]):
        print("minishell: numeric argument required", file=err)
        state.last_status = 2
        raise ShellExit(2)
    if len(args) > 2:
        print("minishell: exit: too many arguments", file=err)
        state.last_status = 1
        return 1
    status = parse_int(args[1]) if len(args) > 1 else 0
    state.last_status = status
    raise ShellExit(status)


def run_builtin(
    args: Sequence[str],
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run the builtin named by ``args[0]`` and return its status."""
    out = out or sys.stdout
    err = err or sys.stderr
    if not args or not is_builtin(args[0]):
        raise ValueError(f"not a builtin: {args[0] if args else ''}")
    handlers: dict[str, Callable[[], int]] = {
        "echo": lambda: echo(args, state, out),
        "cd": lambda: cd(args, state, err),
        "env": lambda: print_env(state, out),
        "pwd": lambda: pwd(args, state, out, err),
        "unset": lambda: unset(args, state),
        "export": lambda: export(args, state, out, err),
        "exit": lambda: exit_builtin(args, state, out, err),
    }
    return handlers[args[0]]()