# minishell

A small interactive command shell. It reads a line, splits it into words and
operators, expands variables, sets up pipes and redirections, and runs either
a built-in command or a program found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minishell
```

The prompt is `MiniShell :\>`. End the session with `exit` or end-of-file
(Ctrl-D), which prints `exit`. The shell takes no arguments; given any, it
exits with status 1. Ctrl-C at the prompt starts a fresh line; Ctrl-C while a
pipeline runs sets the status to 130.

## What it understands

- Words separated by spaces, tabs or newlines.
- Single quotes keep their contents literally; double quotes allow `$`
  expansion. A word with an unclosed quote is dropped.
- `$NAME`, `$?` (last exit status), `$0` (the shell's name); `$1` to `$9`
  expand to nothing. Unset variables expand to nothing.
- Pipes: `cmd1 | cmd2 | cmd3`. The status of the line is that of the last
  stage.
- Redirections: `< file`, `> file`, `>> file` (files are created with mode
  `0664`). If a file cannot be opened, an error is printed and that command
  gets status 1.
- Here-documents: `<< END` expands `$` references in each line;
  `<< 'END'` or `<< "END"` keeps the lines literal. Reading prompts with
  `heredoc>` and stops at the delimiter or end of input.
- Syntax errors, such as a leading `|`, `| |`, or a redirection with no
  target, print ``syntax error near unexpected token `...'`` and run nothing.
- An unknown command prints `NAME: command not found` and sets status 127.

## Built-in commands

| Command  | Behaviour |
|----------|-----------|
| `echo`   | Prints its arguments; a first argument of `-n` (or `-nnn`, or a lone `-`) suppresses the newline. |
| `cd`     | With no argument or `~...`, goes relative to `HOME`; an argument starting with `-` goes to `OLDPWD`. Updates `PWD` and `OLDPWD`. Returns 1 on failure. |
| `pwd`    | Prints the current directory. |
| `export` | With no arguments, lists every variable sorted by name as `declare -x NAME="value"` (or `declare -x NAME` when empty). Otherwise sets `NAME=value` or declares `NAME`; stops with status 1 at the first invalid identifier. |
| `unset`  | Removes the named variables; arguments containing `=` are ignored. |
| `env`    | Prints the exported variables as `NAME=value` lines, ending with `_=/usr/bin/env`. |
| `exit`   | Exits with the given status modulo 256; a non-numeric or out-of-range argument exits with 2; more than one argument prints an error and returns 1. |

A variable with an empty value is declared but not exported: `export` lists
it, `env` and child processes do not see it, and `$NAME` expands to nothing.

On start-up `SHLVL` is incremented and `PWD` is set to the working directory.
Output redirections apply to built-ins; input redirections and pipes into a
built-in are accepted but the built-in does not read them.

## Using it from Python

```python
from minishell.shell import Shell

shell = Shell("minishell", {"HOME": "/tmp", "PATH": "/usr/bin:/bin"})
shell.run_line("export GREETING=hello")
shell.run_line("echo $GREETING | cat")
print(shell.status)
```

`Shell.run_line` returns the line's status; `exit` raises
`minishell.builtins_io.ShellExit`, whose `status` attribute holds the code.
`Shell.repl(read_line)` runs the prompt loop with any function that takes a
prompt and returns a line, or `None` at end of input.

The pieces are usable on their own:

- `minishell.lexer.lex(line, env)` turns a line into `Token`s, raising
  `ShellSyntaxError` for a malformed line.
- `minishell.parser.parse(tokens, env, read_line)` turns tokens into
  `Command` objects, opening their redirections and here-documents.
- `minishell.executor.execute(env, commands)` runs them and stores the
  status in the `Environment`.
- `minishell.environment.Environment` holds the variables, with
  `get`, `set`, `declare`, `remove`, `to_envp` and `sorted_items`.

## What it does not do

There are no `;`, `&&`, `||`, background jobs, globbing, command
substitution, variable assignments without `export`, or redirection of
descriptors other than standard input and output. Line history and editing
come only from Python's `readline` module when it is available.

## Tests

```
pip install .[test]
pytest
```