"""A small interactive command shell with pipes, redirections and built-ins."""

__version__ = "0.1.0"
__all__ = [
    "builtins_env",
    "builtins_io",
    "environment",
    "executor",
    "lexer",
    "parser",
    "shell",
]