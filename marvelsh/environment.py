"""Shell variables and the state shared between the shell's stages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

__all__ = [
    "Environment",
    "ShellState",
    "is_valid_identifier",
    "expand_value",
    "update_or_add",
    "export_argument",
]

_INVALID_IDENTIFIER = "minishell: export: not a valid identifier"


def _is_ascii_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_ascii_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


class Environment:
    """An ordered set of shell variables.

    A variable may exist without a value (``export NAME``); such a variable
    has the value None. New variables go to the end; updating a variable
    keeps its position.
    """

    def __init__(
        self,
        entries: Mapping[str, str | None] | Iterable[tuple[str, str | None]] | None = None,
    ) -> None:
        self._vars: dict[str, str | None] = {}
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in pairs:
            self.add(key, value)

    @classmethod
    def from_strings(cls, strings: Iterable[str]) -> "Environment":
        """Build from ``KEY=VALUE`` strings, skipping those without ``=``."""
        env = cls()
        for entry in strings:
            key, sep, value = entry.partition("=")
            if sep:
                env.add(key, value)
        return env

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value of ``key``, or ``default`` when it is not set."""
        if key in self._vars:
            return self._vars[key]
        return default

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __iter__(self) -> Iterator[tuple[str, str | None]]:
        """Yield ``(key, value)`` pairs in order."""
        return iter(list(self._vars.items()))

    def __len__(self) -> int:
        return len(self._vars)

    def set(self, key: str, value: str | None) -> None:
        """Give ``key`` a value, appending it when it is not yet set."""
        self._vars[key] = value

    def add(self, key: str, value: str | None) -> None:
        """Append ``key`` unless it already exists; an existing value is kept."""
        self._vars.setdefault(key, value)

    def remove(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        return self._vars.pop(key, _MISSING) is not _MISSING

    def to_strings(self) -> list[str]:
        """Return ``KEY=VALUE`` strings, or bare keys for unset values."""
        return [key if value is None else f"{key}={value}" for key, value in self._vars.items()]

    def sorted_strings(self) -> list[str]:
        """Return :meth:`to_strings` sorted in byte order."""
        return sorted(self.to_strings(), key=lambda text: text.encode("utf-8", "surrogateescape"))

    def __repr__(self) -> str:
        return f"Environment({self._vars!r})"


_MISSING = object()


@dataclass
class ShellState:
    """The variables and last exit status of a running shell."""

    env: Environment = field(default_factory=Environment)
    last_status: int = 0


def is_valid_identifier(key: str | None) -> bool:
    """Return True if ``key`` may name a shell variable."""
    if not key:
        return False
    first, rest = key[0], key[1:]
    if not (_is_ascii_alpha(first) or first == "_"):
        return False
    return all(_is_ascii_alnum(char) or char == "_" for char in rest)


def expand_value(value: str | None, env: Environment) -> str | None:
    """Resolve a value of the form ``$NAME`` against ``env``.

    Other values come back unchanged; an unknown or valueless variable
    expands to the empty string.
    """
    if value is None:
        return None
    if not value.startswith("$"):
        return value
    found = env.get(value[1:])
    return found if found is not None else ""


def update_or_add(env: Environment, key: str, value: str | None) -> None:
    """Assign ``value`` to ``key`` as ``export KEY=VALUE`` does.

    An existing variable keeps its value when ``value`` is None; a new one
    gets the empty string in that case.
    """
    if key in env:
        if value is not None:
            env.set(key, expand_value(value, env))
        return
    expanded = expand_value(value, env) if value is not None else ""
    env.add(key, expanded)


def export_argument(env: Environment, arg: str) -> None:
    """Apply one ``export`` argument to ``env``.

    Raises ValueError when the name is not a valid identifier.
    """
    has_equals = "=" in arg
    parts = [part for part in arg.split("=") if part]
    key = parts[0] if parts else None
    value = parts[1] if len(parts) > 1 else None
    if not is_valid_identifier(key):
        raise ValueError(_INVALID_IDENTIFIER)
    if has_equals:
        update_or_add(env, key, value)
    else:
        env.add(key, None)