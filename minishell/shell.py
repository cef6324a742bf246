"""The interactive shell: start-up environment, line loop and entry point."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Callable, Iterable, Mapping
from typing import Optional

from minishell.builtins_io import ShellExit
from minishell.environment import Environment
from minishell.executor import execute
from minishell.lexer import ShellSyntaxError, lex
from minishell.parser import parse

PROMPT = "MiniShell :\\>"

ReadLine = Callable[[str], Optional[str]]

_ATOI_BLANKS = "\n\t\v\f\r "


def _atoi(text: str) -> int:
    """Read a leading signed decimal number, ignoring anything after it."""
    body = text.lstrip(_ATOI_BLANKS)
    sign = 1
    if body[:1] in ("+", "-"):
        if body[0] == "-":
            sign = -1
        body = body[1:]
    digits = []
    for char in body:
        if not "0" <= char <= "9":
            break
        digits.append(char)
    return sign * int("".join(digits)) if digits else 0


def _read_terminal_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _install_signal_handlers() -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    signal.signal(signal.SIGINT, signal.default_int_handler)


class Shell:
    """One shell session: its variables and the last exit status."""

    def __init__(
        self,
        argv0: str = "minishell",
        environ: Mapping[str, str] | Iterable[str] | None = None,
    ) -> None:
        if environ is None:
            environ = os.environ
        if isinstance(environ, Mapping):
            entries = [f"{name}={value}" for name, value in environ.items()]
        else:
            entries = list(environ)
        self.env = Environment.from_envp(entries, argv0)
        self._read_line: ReadLine | None = None
        self.env.set("SHLVL", str(_atoi(self.env.get("SHLVL")) + 1))
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = None
        if cwd is not None:
            self.env.set("PWD", cwd)

    @property
    def status(self) -> int:
        """The exit status of the last pipeline."""
        return self.env.status

    def run_line(self, line: str) -> int:
        """Lex, parse and run one command line; return the resulting status.

        A malformed line is reported and leaves the status unchanged.
        ``exit`` raises :class:`ShellExit`.
        """
        try:
            tokens = lex(line, self.env)
        except ShellSyntaxError as exc:
            print(exc, flush=True)
            return self.env.status
        commands = parse(tokens, self.env, self._read_line)
        return execute(self.env, commands)

    def repl(self, read_line: ReadLine | None = None) -> int:
        """Prompt for lines until end of input or ``exit``; return the exit status."""
        reader = read_line or _read_terminal_line
        self._read_line = read_line
        try:
            while True:
                try:
                    line = reader(PROMPT)
                except KeyboardInterrupt:
                    print(flush=True)
                    continue
                if line is None:
                    print("exit", flush=True)
                    return 0
                try:
                    self.run_line(line)
                except ShellExit as exc:
                    return exc.status
                except KeyboardInterrupt:
                    print(flush=True)
                    self.env.status = 130
        finally:
            self._read_line = None


def main(argv: list[str] | None = None) -> int:
    """Start an interactive session; any argument is refused with status 1."""
    if argv is None:
        argv = sys.argv[1:]
    if argv:
        return 1
    try:
        import readline  # noqa: F401  line editing and history for input()
    except ImportError:
        pass
    _install_signal_handlers()
    shell = Shell(sys.argv[0] if sys.argv else "minishell")
    return shell.repl()


if __name__ == "__main__":
    sys.exit(main())