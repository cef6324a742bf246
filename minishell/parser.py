"""Group tokens into commands and open their redirections and here-documents."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from minishell.environment import Environment, expand_variable
from minishell.lexer import ShellSyntaxError, Token, TokenType

HEREDOC_PROMPT = "heredoc>"
FILE_MODE = 0o664

ReadLine = Callable[[str], Optional[str]]


def _read_stdin_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _close(fd: int | None) -> None:
    if fd is not None:
        try:
            os.close(fd)
        except OSError:
            pass


@dataclass
class Command:
    """One stage of a pipeline: its words and its open redirections."""

    args: list[str] = field(default_factory=list)
    infile: int | None = None
    outfile: int | None = None
    infile_failed: bool = False
    outfile_failed: bool = False

    @property
    def failed(self) -> bool:
        """True when the last input or output redirection could not be opened."""
        return self.infile_failed or self.outfile_failed

    def close(self) -> None:
        """Close any descriptors this command still holds."""
        _close(self.infile)
        _close(self.outfile)
        self.infile = None
        self.outfile = None


def expand_heredoc_line(line: str, env: Environment) -> str:
    """Expand ``$NAME`` references in one here-document line.

    Only a ``$`` followed by a letter, digit or ``_`` is expanded.
    """
    parts: list[str] = []
    pos = 0
    while pos < len(line):
        char = line[pos]
        following = line[pos + 1:pos + 2]
        if char == "$" and (following == "_" or (following.isascii() and following.isalnum())):
            value, pos = expand_variable(env, line, pos + 1)
            parts.append(value)
        else:
            parts.append(char)
            pos += 1
    return "".join(parts)


def read_heredoc(
    delimiter: str,
    expand: bool,
    env: Environment,
    read_line: ReadLine | None = None,
) -> str:
    """Read lines until ``delimiter`` or end of input and return the body."""
    reader = read_line or _read_stdin_line
    lines: list[str] = []
    while True:
        line = reader(HEREDOC_PROMPT)
        if line is None or line == delimiter:
            break
        lines.append(expand_heredoc_line(line, env) if expand else line)
    return "".join(f"{line}\n" for line in lines)


def _body_descriptor(body: str) -> int:
    with tempfile.TemporaryFile() as handle:
        handle.write(body.encode())
        handle.flush()
        handle.seek(0)
        return os.dup(handle.fileno())


def open_redirection(
    operator: str,
    target: str,
    env: Environment,
    read_line: ReadLine | None = None,
) -> int:
    """Open the descriptor for one redirection; raises ``OSError`` on failure."""
    if operator == "<<":
        return _body_descriptor(read_heredoc(target, False, env, read_line))
    if operator == "<$":
        return _body_descriptor(read_heredoc(target, True, env, read_line))
    if operator == "<":
        return os.open(target, os.O_RDONLY)
    if operator == ">>":
        return os.open(target, os.O_WRONLY | os.O_APPEND | os.O_CREAT, FILE_MODE)
    if operator == ">":
        return os.open(target, os.O_WRONLY | os.O_TRUNC | os.O_CREAT, FILE_MODE)
    raise ValueError(f"unknown redirection operator: {operator!r}")


def _apply_redirection(
    command: Command,
    operator: str,
    target: str,
    env: Environment,
    read_line: ReadLine | None,
) -> None:
    try:
        fd: int | None = open_redirection(operator, target, env, read_line)
    except OSError as exc:
        print(f"MiniShell: {target}: {exc.strerror}", file=sys.stderr)
        fd = None
    if operator.startswith("<"):
        _close(command.infile)
        command.infile = fd
        command.infile_failed = fd is None
    else:
        _close(command.outfile)
        command.outfile = fd
        command.outfile_failed = fd is None


def parse(
    tokens: Sequence[Token],
    env: Environment,
    read_line: ReadLine | None = None,
) -> list[Command]:
    """Build the pipeline's commands, opening every redirection in order.

    An interrupted here-document abandons the whole line: the status
    becomes 130 and no commands are returned.
    """
    commands: list[Command] = []
    current = Command()
    stream = iter(tokens)
    try:
        for token in stream:
            if token.type is TokenType.PIPE:
                commands.append(current)
                current = Command()
            elif token.type is TokenType.REDIRECT:
                target = next(stream, None)
                if target is None:
                    raise ShellSyntaxError("EOF")
                _apply_redirection(current, token.text, target.text, env, read_line)
            else:
                current.args.append(token.text)
    except KeyboardInterrupt:
        for command in (*commands, current):
            command.close()
        env.status = 130
        return []
    if tokens:
        commands.append(current)
    return commands