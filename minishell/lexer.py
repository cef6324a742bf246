"""Split a command line into words, pipes and redirections."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from minishell.environment import Environment, expand_variable

_BLANKS = " \t\n"
_CONTROLS = "<>|"


class TokenType(enum.IntEnum):
    PIPE = 0
    REDIRECT = 1
    WORD = 2


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str


class ShellSyntaxError(Exception):
    """A command line whose tokens do not form a valid pipeline."""

    def __init__(self, token: str) -> None:
        super().__init__(f"syntax error near unexpected token `{token}'")
        self.token = token


def _can_expand(line: str, pos: int) -> bool:
    if pos >= len(line):
        return False
    char = line[pos]
    return char in "?_" or (char.isascii() and char.isalnum())


def _read_word(line: str, pos: int, env: Environment) -> tuple[str | None, int]:
    """Read one word; ``None`` means an unterminated quote swallowed it."""
    parts: list[str] = []
    quote: str | None = None
    while pos < len(line):
        char = line[pos]
        if quote is None and (char in _BLANKS or char in _CONTROLS):
            break
        if quote is None and char in "'\"":
            quote = char
            pos += 1
        elif char == quote:
            quote = None
            pos += 1
        elif char == "$" and quote != "'" and _can_expand(line, pos + 1):
            value, pos = expand_variable(env, line, pos + 1)
            parts.append(value)
        else:
            parts.append(char)
            pos += 1
    if quote is not None:
        return None, pos
    return "".join(parts), pos


def _read_control(line: str, pos: int) -> tuple[Token, int]:
    pair = line[pos:pos + 2]
    if pair == "<<":
        rest = line[pos + 2:].lstrip(_BLANKS)
        quoted = rest[:1] in ("'", '"')
        return Token(TokenType.REDIRECT, "<<" if quoted else "<$"), pos + 2
    if pair == ">>":
        return Token(TokenType.REDIRECT, ">>"), pos + 2
    char = line[pos]
    kind = TokenType.PIPE if char == "|" else TokenType.REDIRECT
    return Token(kind, char), pos + 1


def tokenize(line: str, env: Environment) -> list[Token]:
    """Turn ``line`` into tokens, expanding variables inside words.

    A here-document operator followed by a quoted delimiter becomes ``<<``;
    an unquoted one becomes ``<$``, marking that its body is expanded.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        if line[pos] in _BLANKS:
            pos += 1
            continue
        if line[pos] in _CONTROLS:
            token, pos = _read_control(line, pos)
            tokens.append(token)
        else:
            word, pos = _read_word(line, pos, env)
            if word is not None:
                tokens.append(Token(TokenType.WORD, word))
    return tokens


def check_syntax(tokens: list[Token]) -> str | None:
    """Return the text of the first misplaced token, ``EOF``, or ``None``."""
    if not tokens:
        return None
    previous = TokenType.PIPE
    for token in tokens:
        if previous is TokenType.PIPE and token.type is TokenType.PIPE:
            return token.text
        if previous is TokenType.REDIRECT and token.type is not TokenType.WORD:
            return token.text
        previous = token.type
    if previous in (TokenType.PIPE, TokenType.REDIRECT):
        return "EOF"
    return None


def lex(line: str, env: Environment) -> list[Token]:
    """Tokenize ``line`` and raise :class:`ShellSyntaxError` if it is malformed."""
    tokens = tokenize(line, env)
    offending = check_syntax(tokens)
    if offending is not None:
        raise ShellSyntaxError(offending)
    return tokens