"""Running parsed commands: lookups, redirections, processes and pipelines."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import BinaryIO, TextIO, Union

from .builtins import ShellExit, is_builtin, run_builtin
from .environment import Environment, ShellState
from .parser import Command
from .syntax import not_found_message

__all__ = [
    "RedirectionError",
    "find_command_path",
    "open_redirections",
    "status_from_returncode",
    "run_simple",
    "run_builtin_command",
    "run_pipeline",
    "execute",
]

_FILE_MODE = 0o644
_OPEN_MODES = {
    "<": (os.O_RDONLY, "rb"),
    ">": (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "wb"),
    ">>": (os.O_WRONLY | os.O_CREAT | os.O_APPEND, "ab"),
}
_INTERRUPTED_STATUS = 128 + int(signal.SIGINT)

# What feeds a pipeline stage: nothing (inherit), fixed bytes, or a pipe.
_Source = Union[None, bytes, BinaryIO]
_Result = Union[int, "subprocess.Popen[bytes]"]


class RedirectionError(Exception):
    """Raised when a redirection target cannot be opened."""


def find_command_path(name: str, env: Environment) -> str | None:
    """Locate the program ``name`` the way the shell runs it.

    Names starting with ``/`` or ``.`` are used as they are when they exist;
    other names are looked up in the directories of ``PATH``.
    """
    if not name:
        return None
    if name.startswith(("/", ".")):
        return name if os.path.exists(name) else None
    search = env.get("PATH")
    if not search:
        return None
    for directory in filter(None, search.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


@contextlib.contextmanager
def open_redirections(
    command: Command,
) -> Iterator[tuple[BinaryIO | None, BinaryIO | None]]:
    """Open the files of ``command``'s redirections in order.

    Yields the binary file to read standard input from and the one to write
    standard output to; either is None when not redirected. A later
    redirection replaces an earlier one of the same direction, but every
    output file is still created. Raises RedirectionError when a file
    cannot be opened.
    """
    with contextlib.ExitStack() as stack:
        stdin: BinaryIO | None = None
        stdout: BinaryIO | None = None
        for redirection in command.redirections:
            spec = _OPEN_MODES.get(redirection.kind)
            if spec is None:
                continue
            flags, mode = spec
            try:
                descriptor = os.open(redirection.target, flags, _FILE_MODE)
            except OSError as exc:
                raise RedirectionError(f"open: {exc.strerror}") from exc
            handle = stack.enter_context(os.fdopen(descriptor, mode))
            if redirection.kind == "<":
                stdin = handle
            else:
                stdout = handle
        yield stdin, stdout


def status_from_returncode(returncode: int) -> int:
    """Turn a process return code into a shell exit status."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _fileno(stream: TextIO) -> int | None:
    try:
        stream.flush()
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _child_env(env: Environment) -> dict[str, str]:
    return {key: value for key, value in env if value is not None}


def _check_path(name: str, path: str) -> tuple[int, str] | None:
    """Return a status and message when ``path`` cannot be run."""
    try:
        info = os.stat(path)
    except OSError:
        if name.startswith(("/", "./")):
            return 127, "No such file or directory"
        return 127, "command not found"
    if os.path.isdir(path) or (info.st_mode & 0o170000) == 0o040000:
        return 126, f"minishell: {name}: Is a directory"
    if not os.access(path, os.X_OK):
        return 126, f"minishell: {name}: Permission denied"
    return None


def _spawn(
    command: Command,
    path: str,
    env: Environment,
    stdin: BinaryIO | None,
    stdout: BinaryIO | None,
    out: TextIO,
    err: TextIO,
) -> int:
    options: dict[str, object] = {}
    if stdin is not None:
        options["stdin"] = stdin
    elif command.heredoc is not None:
        options["input"] = command.heredoc.encode()
    if stdout is not None:
        options["stdout"] = stdout
    else:
        out_fd = _fileno(out)
        options["stdout"] = out_fd if out_fd is not None else subprocess.PIPE
    err_fd = _fileno(err)
    options["stderr"] = err_fd if err_fd is not None else subprocess.PIPE
    try:
        result = subprocess.run(
            list(command.args), executable=path, env=_child_env(env), **options
        )
    except KeyboardInterrupt:
        return _INTERRUPTED_STATUS
    except OSError as exc:
        print(f"Couldn't execute: {exc.strerror}", file=err)
        return 127
    if result.stdout:
        out.write(_decode(result.stdout))
    if result.stderr:
        err.write(_decode(result.stderr))
    return status_from_returncode(result.returncode)


def _run_simple(command: Command, state: ShellState, out: TextIO, err: TextIO) -> int:
    if not command.args or not command.args[0]:
        return 0
    name = command.args[0]
    path = find_command_path(name, state.env)
    if path is None:
        print(not_found_message(name), file=err)
        return 127
    problem = _check_path(name, path)
    if problem is not None:
        status, message = problem
        print(message, file=err)
        return status
    try:
        with open_redirections(command) as (stdin, stdout):
            return _spawn(command, path, state.env, stdin, stdout, out, err)
    except RedirectionError as exc:
        print(exc, file=err)
        return 1


def run_simple(
    command: Command,
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run one external command and wait for it; return its status."""
    out = out or sys.stdout
    err = err or sys.stderr
    status = _run_simple(command, state, out, err)
    state.last_status = status
    return status


def run_builtin_command(
    command: Command,
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run a builtin in the shell itself, honouring its redirections."""
    out = out or sys.stdout
    err = err or sys.stderr
    try:
        with open_redirections(command) as (_stdin, stdout):
            if stdout is None:
                return run_builtin(command.args, state, out, err)
            buffer = io.StringIO()
            try:
                return run_builtin(command.args, state, buffer, err)
            finally:
                stdout.write(buffer.getvalue().encode())
    except RedirectionError as exc:
        print(exc, file=err)
        state.last_status = 1
        return 1


def _close(source: _Source) -> None:
    if source is not None and not isinstance(source, bytes):
        with contextlib.suppress(OSError):
            source.close()


def _feed(stream: BinaryIO, data: bytes) -> None:
    try:
        stream.write(data)
    except OSError:
        pass
    finally:
        with contextlib.suppress(OSError):
            stream.close()


def _run_isolated_builtin(
    args: Sequence[str], state: ShellState, err: TextIO
) -> tuple[bytes, int]:
    """Run a builtin on a copy of the state, as a pipeline stage does."""
    scratch = ShellState(Environment(list(state.env)), state.last_status)
    buffer = io.StringIO()
    try:
        cwd: str | None = os.getcwd()
    except OSError:
        cwd = None
    try:
        status = run_builtin(args, scratch, buffer, err)
    except ShellExit as exc:
        status = exc.status
    finally:
        if cwd is not None:
            with contextlib.suppress(OSError):
                os.chdir(cwd)
    return buffer.getvalue().encode(), status % 256


def _start_stage(
    command: Command,
    state: ShellState,
    source: _Source,
    last: bool,
    out: TextIO,
    err: TextIO,
    stack: contextlib.ExitStack,
    feeders: list[threading.Thread],
) -> tuple[_Result, _Source]:
    """Start one pipeline stage; return its result and what feeds the next."""
    if not command.args:
        _close(source)
        return 0, b""
    try:
        stdin, stdout = stack.enter_context(open_redirections(command))
    except RedirectionError as exc:
        print(exc, file=err)
        _close(source)
        return 1, b""
    if is_builtin(command.args[0]):
        _close(source)
        data, status = _run_isolated_builtin(command.args, state, err)
        if stdout is not None:
            stdout.write(data)
            return status, b""
        if not last:
            return status, data
        out.write(_decode(data))
        out.flush()
        return status, b""
    path = find_command_path(command.args[0], state.env)
    if path is None:
        _close(source)
        print("minishell: command not found", file=err)
        return 127, b""
    feed: bytes | None = None
    stdin_arg: object
    if stdin is not None:
        stdin_arg = stdin
    elif isinstance(source, bytes):
        stdin_arg, feed = subprocess.PIPE, source
    else:
        stdin_arg = source
    if stdout is not None:
        stdout_arg: object = stdout
    elif not last:
        stdout_arg = subprocess.PIPE
    else:
        out_fd = _fileno(out)
        stdout_arg = out_fd if out_fd is not None else subprocess.PIPE
    try:
        process = subprocess.Popen(
            list(command.args),
            executable=path,
            env=_child_env(state.env),
            stdin=stdin_arg,
            stdout=stdout_arg,
            stderr=_fileno(err),
        )
    except OSError as exc:
        print(f"execve failed: {exc.strerror}", file=err)
        return 1, b""
    finally:
        _close(source)
    if feed is not None and process.stdin is not None:
        feeder = threading.Thread(target=_feed, args=(process.stdin, feed), daemon=True)
        feeder.start()
        feeders.append(feeder)
    if not last and stdout is None:
        return process, process.stdout
    return process, b""


def _wait(result: _Result) -> int:
    if isinstance(result, int):
        return result
    while True:
        try:
            return status_from_returncode(result.wait())
        except KeyboardInterrupt:
            continue


def run_pipeline(
    commands: Iterable[Command], state: ShellState, err: TextIO | None = None
) -> int:
    """Run ``commands`` connected by pipes; return the last one's status.

    Builtins in a pipeline work on a copy of the shell state, so their
    changes do not last. The final stage writes to standard output.
    """
    err = err or sys.stderr
    out = sys.stdout
    commands = list(commands)
    results: list[_Result] = []
    feeders: list[threading.Thread] = []
    with contextlib.ExitStack() as stack:
        incoming: _Source = None
        for index, command in enumerate(commands):
            last = index == len(commands) - 1
            if command.heredoc is not None:
                _close(incoming)
                source: _Source = command.heredoc.encode()
            else:
                source = incoming
            result, incoming = _start_stage(
                command, state, source, last, out, err, stack, feeders
            )
            results.append(result)
        _close(incoming)
        final = results[-1] if results else 0
        if not isinstance(final, int) and final.stdout is not None:
            out.write(_decode(final.stdout.read()))
            out.flush()
            final.stdout.close()
        statuses = [_wait(result) for result in results]
        for feeder in feeders:
            feeder.join()
    status = statuses[-1] if statuses else 0
    state.last_status = status
    return status


def execute(
    commands: Iterable[Command],
    state: ShellState,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run a parsed command line and return its status."""
    commands = list(commands)
    if not commands:
        return state.last_status
    if len(commands) > 1:
        return run_pipeline(commands, state, err)
    command = commands[0]
    if command.args and is_builtin(command.args[0]):
        return run_builtin_command(command, state, out, err)
    return run_simple(command, state, out, err)