# marvelsh

A small interactive command shell. It reads lines at a `marvel$ ` prompt,
splits them into words and operators, expands variables, and runs the
resulting commands, either one at a time or connected in pipelines.

## Features

- Single and double quotes; single quotes keep `$` literal. Word and quote
  pieces written without a space between them form one argument
  (`a"b"'c'` is `abc`).
- Variable expansion: `$NAME` and `$?` (exit status of the last command).
- Pipelines with `|`; the status of a pipeline is that of its last command.
- Redirections: `<`, `>`, `>>`, and here-documents with `<<`.
  A quoted here-document delimiter turns expansion off inside the body.
- Builtins: `echo` (with `-n`), `cd` (with `~`, `~/path` and `-`), `pwd`,
  `env`, `export`, `unset`, `exit`.
- Other commands are found through `PATH` (or used as given when they start
  with `/` or `.`) and started as child processes.
- Syntax errors such as a leading `|`, two pipes in a row, or a redirection
  with no file are reported before anything runs.

## Installation

```
pip install .
```

## Usage

Start the shell:

```
marvelsh
```

Then type commands:

```
marvel$ export GREETING=hello
marvel$ echo "$GREETING world" | tr a-z A-Z > out.txt
marvel$ cat << EOF
> value is $GREETING
> EOF
value is hello
marvel$ exit 3
```

End of input (Ctrl-D) prints `exit` and leaves the shell with status 0.
Ctrl-C at the prompt starts a fresh line and sets `$?` to 130; Ctrl-C while
a here-document is being read abandons the command line, also with 130.

### Builtin details

- `pwd` prints the `PWD` variable; `cd` updates `OLDPWD` and `PWD` only
  when those variables already exist.
- `env` prints `KEY=VALUE` for values longer than one character and the
  bare name otherwise.
- `export` with no arguments lists all variables as `declare -x ...`,
  sorted. `export NAME=$OTHER` copies the value of `OTHER`.
- `exit` takes an optional numeric status; a non-numeric argument exits
  with 2, and more than one argument is refused with status 1.
- A builtin in a pipeline works on a copy of the shell state, so
  `export`, `cd` or `unset` there has no lasting effect.

## Using it from Python

The pieces of the shell can be used on their own:

```python
from marvelsh.tokens import tokenize
from marvelsh.syntax import check_syntax
from marvelsh.expander import expand_tokens
from marvelsh.quotes import manage_quotes
from marvelsh.parser import parse_tokens
from marvelsh.environment import Environment

env = Environment({"NAME": "world"})
tokens = tokenize('cat < in.txt | grep "$NAME" > out.txt')
check_syntax(tokens)            # raises marvelsh.syntax.ShellSyntaxError
tokens = manage_quotes(expand_tokens(tokens, env))
commands = parse_tokens(tokens) # list of marvelsh.parser.Command
```

`marvelsh.shell.process_input` runs one line against a
`marvelsh.environment.ShellState`, and `marvelsh.shell.repl` drives the
full read–run loop with a line reader and output streams of your choosing.
`marvelsh.executor.execute` runs already parsed commands, and
`marvelsh.builtins.run_builtin` runs a single builtin; `exit` signals the
end of the shell by raising `marvelsh.builtins.ShellExit`.

## What it does not do

This is a deliberately small shell. It has no `;`, `&&`, `||` or
background jobs, no backslash escapes, no globbing, no subshells or
command substitution, no scripts or control flow, and no persistent
history file. Syntax errors are printed on standard output.

## Tests

```
pip install .[test]
pytest
```