"""The export, unset and cd builtins."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO

from minishell.environment import Environment, is_valid_identifier, split_assignment


def _print_declarations(env: Environment, out: TextIO) -> None:
    for name, value in env.sorted_items():
        if value:
            out.write(f'declare -x {name}="{value}"\n')
        else:
            out.write(f"declare -x {name}\n")


def run_export(env: Environment, args: Sequence[str], out: TextIO | None = None) -> int:
    """Set or declare variables; with no arguments list them all, sorted.

    Stops at the first invalid identifier and returns 1.
    """
    if out is None:
        out = sys.stdout
    if len(args) < 2:
        _print_declarations(env, out)
        return 0
    for arg in args[1:]:
        if not is_valid_identifier(arg):
            out.write(f"minishell: export: `{arg}': not a valid identifier\n")
            return 1
        if "=" in arg:
            name, value = split_assignment(arg)
            env.set(name, value)
        else:
            env.declare(arg)
    return 0


def run_unset(env: Environment, args: Sequence[str]) -> int:
    """Remove the named variables; arguments holding ``=`` are ignored."""
    for arg in args[1:]:
        if "=" not in arg:
            env.remove(arg)
    return 0


def _getcwd() -> str | None:
    try:
        return os.getcwd()
    except OSError:
        return None


def _change_directory(path: str, label: str | None, out: TextIO) -> int:
    try:
        os.chdir(path)
    except OSError as exc:
        reason = exc.strerror or str(exc)
        prefix = f"{label}: " if label is not None else ""
        out.write(f"MiniShell: cd: {prefix}{reason}\n")
        return 1
    return 0


def _cd_home(env: Environment, target: str | None, out: TextIO) -> int:
    home = env.get("HOME")
    if not home:
        out.write("MiniShell: cd: HOME not set\n")
        return 1
    path = home + target[1:] if target and len(target) > 1 else home
    return _change_directory(path, None, out)


def _cd_back(env: Environment, out: TextIO) -> int:
    previous = env.get("OLDPWD")
    if not previous:
        out.write("MiniShell: cd: OLDPWD not set\n")
        return 1
    return _change_directory(previous, None, out)


def run_cd(env: Environment, args: Sequence[str], out: TextIO | None = None) -> int:
    """Change directory and record ``OLDPWD`` and ``PWD``.

    No argument or one starting with ``~`` goes under ``HOME``; one starting
    with ``-`` goes back to ``OLDPWD``. Returns 1 on failure.
    """
    if out is None:
        out = sys.stdout
    previous = _getcwd()
    target = args[1] if len(args) > 1 else None
    if target is None or target.startswith("~"):
        status = _cd_home(env, target, out)
    elif target.startswith("-"):
        status = _cd_back(env, out)
    else:
        status = _change_directory(target, target, out)
    current = _getcwd()
    if previous is not None:
        env.set("OLDPWD", previous)
    if current is not None:
        env.set("PWD", current)
    return status