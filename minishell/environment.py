"""Shell variables: the exported environment and ``$`` expansion."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

UNDERSCORE_ENTRY = "_=/usr/bin/env"


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def split_assignment(entry: str) -> tuple[str, str]:
    """Split ``NAME=value`` at the first ``=``; no ``=`` gives an empty value."""
    name, _, value = entry.partition("=")
    return name, value


def is_valid_identifier(text: str) -> bool:
    """Check the part of ``text`` before any ``=`` is a valid variable name."""
    name = text.partition("=")[0]
    if not name:
        return False
    first = name[0]
    if not (first == "_" or (first.isascii() and first.isalpha())):
        return False
    return all(_is_name_char(char) for char in name[1:])


class Environment:
    """Ordered shell variables plus the state used by ``$`` expansion.

    A variable whose value is empty is declared but not exported: it shows up
    in :meth:`sorted_items` but not in :meth:`to_envp`.
    """

    def __init__(
        self,
        variables: Mapping[str, str] | Iterable[tuple[str, str]] = (),
        argv0: str = "minishell",
    ) -> None:
        items = variables.items() if isinstance(variables, Mapping) else variables
        self._variables: dict[str, str] = {}
        for name, value in items:
            self._variables[name] = value
        self.argv0 = argv0
        self.status = 0

    @classmethod
    def from_envp(cls, envp: Iterable[str], argv0: str = "minishell") -> Environment:
        """Build from ``NAME=value`` strings, dropping any ``_`` entry."""
        return cls(
            (split_assignment(entry) for entry in envp if not entry.startswith("_=")),
            argv0,
        )

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    def get(self, name: str) -> str:
        """Return the exported value of ``name``, or an empty string."""
        prefix = name + "="
        for entry in self.to_envp():
            if entry.startswith(prefix):
                return entry[len(prefix):]
        return ""

    def set(self, name: str, value: str) -> None:
        """Assign ``value``, keeping the variable's position if it exists."""
        self._variables[name] = value

    def declare(self, name: str) -> None:
        """Declare ``name`` without a value unless it already exists."""
        self._variables.setdefault(name, "")

    def remove(self, name: str) -> None:
        """Remove ``name``; removing an unknown name does nothing."""
        self._variables.pop(name, None)

    def to_envp(self) -> list[str]:
        """Return the exported variables as ``NAME=value`` strings."""
        entries = [f"{name}={value}" for name, value in self._variables.items() if value]
        entries.append(UNDERSCORE_ENTRY)
        return entries

    def sorted_items(self) -> list[tuple[str, str]]:
        """Return every variable, declared or exported, sorted by name."""
        return sorted(self._variables.items(), key=lambda item: item[0])


def expand_variable(env: Environment, text: str, pos: int) -> tuple[str, int]:
    """Expand the variable reference starting at ``text[pos]`` (just after ``$``).

    Returns the expanded value and the position just past the reference.
    """
    char = text[pos] if pos < len(text) else ""
    if char == "?":
        return str(env.status), pos + 1
    if char == "0":
        return env.argv0, pos + 1
    if char and "1" <= char <= "9":
        return "", pos + 1
    end = pos
    while end < len(text) and _is_name_char(text[end]):
        end += 1
    identifier = text[pos:end]
    if not identifier:
        return "", end
    return env.get(identifier), end