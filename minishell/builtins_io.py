"""The echo, env, pwd and exit builtins."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO

from minishell.environment import Environment

_LEADING_BLANKS = "\n\t\v\f\r "
_INT64_MAX = 2**63 - 1
_INT64_MIN_TEXT = "-9223372036854775808"


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(f"exit {status}")
        self.status = status


def run_echo(args: Sequence[str], out: TextIO | None = None) -> int:
    """Print the arguments; a first argument of ``-`` and ``n``s drops the newline."""
    out = out or sys.stdout
    first = args[1] if len(args) > 1 else ""
    no_newline = first.startswith("-") and set(first[1:]) <= {"n"}
    words = args[2:] if no_newline else args[1:]
    out.write(" ".join(words))
    if not no_newline:
        out.write("\n")
    return 0


def run_env(env: Environment, out: TextIO | None = None) -> int:
    """Print every exported variable."""
    out = out or sys.stdout
    for entry in env.to_envp():
        out.write(f"{entry}\n")
    return 0


def run_pwd(out: TextIO | None = None) -> int:
    """Print the working directory; 1 when it cannot be determined."""
    out = out or sys.stdout
    try:
        cwd = os.getcwd()
    except OSError:
        return 1
    out.write(f"{cwd}\n")
    return 0


def parse_exit_argument(text: str) -> int | None:
    """Return the exit status ``text`` asks for, or ``None`` if not numeric.

    Leading blanks are skipped and one sign is accepted, but the sign does
    not change the result; values beyond a signed 64-bit integer are rejected.
    """
    body = text.lstrip(_LEADING_BLANKS)
    if body == _INT64_MIN_TEXT:
        return 0
    if body[:1] in ("+", "-"):
        body = body[1:]
    if not body or not all("0" <= char <= "9" for char in body):
        return None
    magnitude = int(body)
    if magnitude > _INT64_MAX:
        return None
    return magnitude % 256


def run_exit(
    args: Sequence[str],
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Leave the shell by raising :class:`ShellExit`.

    With more than one argument nothing happens and 1 is returned.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    if len(args) < 2:
        out.write("exit\n")
        raise ShellExit(0)
    status = parse_exit_argument(args[1])
    if status is None:
        err.write(f"exit\nminishell: exit: {args[1]}: numeric argument required\n")
        raise ShellExit(2)
    if len(args) > 2:
        err.write("exit\nminishell: exit: : too many arguments\n")
        return 1
    out.write("exit\n")
    raise ShellExit(status)