"""Run a parsed pipeline: builtins inside the shell, other commands as processes."""

from __future__ import annotations

import io
import os
import signal
import subprocess
import sys
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO

from minishell.builtins_env import run_cd, run_export, run_unset
from minishell.builtins_io import run_echo, run_env, run_exit, run_pwd
from minishell.environment import Environment, split_assignment
from minishell.parser import Command

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})
COMMAND_NOT_FOUND = 127
CANNOT_EXECUTE = 126
INTERRUPTED = 130


@dataclass
class _Stage:
    process: subprocess.Popen | None = None
    status: int = 0


def _close(fd: int | None) -> None:
    if fd is not None:
        try:
            os.close(fd)
        except OSError:
            pass


def _flush_stdout() -> None:
    try:
        sys.stdout.flush()
    except (OSError, ValueError):
        pass


def _text_descriptor(text: str) -> int:
    with tempfile.TemporaryFile() as handle:
        handle.write(text.encode())
        handle.flush()
        handle.seek(0)
        return os.dup(handle.fileno())


def _process_environment(env: Environment) -> dict[str, str]:
    return dict(split_assignment(entry) for entry in env.to_envp())


def find_executable(name: str, env: Environment) -> str | None:
    """Return ``name`` itself if executable, else the first match on ``PATH``."""
    if not name:
        return None
    if os.access(name, os.X_OK):
        return name
    for directory in filter(None, env.get("PATH").split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def _dispatch(name: str, env: Environment, args: Sequence[str], out: TextIO, err: TextIO) -> int:
    if name == "echo":
        return run_echo(args, out)
    if name == "cd":
        return run_cd(env, args, out)
    if name == "pwd":
        return run_pwd(out)
    if name == "export":
        return run_export(env, args, out)
    if name == "unset":
        return run_unset(env, args)
    if name == "env":
        return run_env(env, out)
    return run_exit(args, out, err)


def run_builtin(
    env: Environment,
    command: Command,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int | None:
    """Run ``command`` if it names a builtin; ``None`` when it does not.

    Output goes to the command's output redirection when it has one.
    A failed redirection gives status 1 without running anything.
    """
    name = command.args[0] if command.args else ""
    if name not in BUILTINS:
        return None
    if out is None:
        out = sys.stdout
    if err is None:
        err = sys.stderr
    if command.failed:
        command.close()
        return 1
    outfile = command.outfile
    command.outfile = None
    command.close()
    if outfile is None:
        return _dispatch(name, env, command.args, out, err)
    with os.fdopen(outfile, "w") as stream:
        return _dispatch(name, env, command.args, stream, err)


def _builtin_status(env: Environment, command: Command, out: TextIO | None = None) -> int:
    status = run_builtin(env, command, out)
    return 0 if status is None else status


def _start_external(
    env: Environment,
    command: Command,
    stdin_fd: int | None,
    stdout_fd: int | None,
) -> _Stage:
    if not command.args:
        return _Stage(status=0)
    name = command.args[0]
    path = find_executable(name, env)
    if path is None:
        sys.stderr.write(f"{name}: command not found\n")
        return _Stage(status=COMMAND_NOT_FOUND)
    if command.failed:
        return _Stage(status=1)
    stdin = command.infile if command.infile is not None else stdin_fd
    stdout = command.outfile if command.outfile is not None else stdout_fd
    _flush_stdout()
    try:
        process = subprocess.Popen(
            list(command.args),
            executable=path,
            stdin=stdin,
            stdout=stdout,
            env=_process_environment(env),
        )
    except OSError as exc:
        sys.stderr.write(f"{name}: {exc.strerror or exc}\n")
        return _Stage(status=CANNOT_EXECUTE)
    return _Stage(process=process)


def _wait(stages: Sequence[_Stage]) -> int:
    status = 0
    interrupted = False
    for stage in stages:
        if stage.process is None:
            status = stage.status
            continue
        while True:
            try:
                code = stage.process.wait()
                break
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                interrupted = True
        if code < 0:
            if -code == signal.SIGQUIT:
                sys.stdout.write("Quit (core dumped)")
            status = 128 - code
        else:
            status = code
    _flush_stdout()
    return INTERRUPTED if interrupted else status


def execute(env: Environment, commands: Sequence[Command]) -> int:
    """Run the pipeline, store the last stage's status in ``env`` and return it.

    An empty pipeline leaves the status as it was.
    """
    if not commands:
        return env.status
    stages: list[_Stage] = []
    pending: int | None = None
    try:
        for index, command in enumerate(commands):
            last = index == len(commands) - 1
            stdin_fd, pending = pending, None
            try:
                if command.args and command.args[0] in BUILTINS:
                    if last:
                        stage = _Stage(status=_builtin_status(env, command))
                    else:
                        buffer = io.StringIO()
                        stage = _Stage(status=_builtin_status(env, command, buffer))
                        pending = _text_descriptor(buffer.getvalue())
                elif last:
                    stage = _start_external(env, command, stdin_fd, None)
                else:
                    read_fd, write_fd = os.pipe()
                    pending = read_fd
                    try:
                        stage = _start_external(env, command, stdin_fd, write_fd)
                    finally:
                        os.close(write_fd)
            finally:
                _close(stdin_fd)
                command.close()
            stages.append(stage)
    finally:
        _close(pending)
        for command in commands:
            command.close()
    env.status = _wait(stages)
    return env.status