"""CLI entry point for the Victoria interpreter.

Usage:
    python -m victoria [-v|-vv] [--plain] [--no-jokes] [--max-depth N] <program.vc>
    python -m victoria [options]            # interactive session

Options:
  -v             Increase debug verbosity (can be repeated)
  --plain        Print diagnostics without colours or source snippets
  --no-jokes     Never add a joke to a diagnostic
  --max-depth N  Maximum call depth before a recursion error

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Colours are also turned off when NO_COLOR
is set or stderr is not a terminal, and VICTORIA_NO_JOKES has the same
effect as --no-jokes.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from .errors import ErrorReporter, JokeTeller, VictoriaError, default_jokes
from .interpreter import DEFAULT_MAX_DEPTH, Interpreter
from .objects import Null
from .parser import parse_program

PROMPT = ">> "


def report(diagnostics, source: str, filename: str, color: bool, jokes: JokeTeller,
           out: Optional[TextIO] = None) -> None:
    reporter = ErrorReporter(source, filename)
    reporter.extend(diagnostics)
    (out or sys.stderr).write(reporter.format(color=color, jokes=jokes))


def run_file(path: Path, interpreter: Interpreter, color: bool, jokes: JokeTeller) -> int:
    with open(path, 'r', encoding='utf-8') as f:
        source = f.read()
    filename = str(path)
    interpreter.source = source
    interpreter.filename = filename
    try:
        interpreter.run(parse_program(source, filename))
    except VictoriaError as e:
        report(interpreter.warnings + e.diagnostics, source, filename, color, jokes)
        return 1
    if interpreter.warnings:
        report(interpreter.warnings, source, filename, color, jokes)
    return 0


def run_repl(interpreter: Interpreter, color: bool, jokes: JokeTeller,
             stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """Read, evaluate and print one line at a time in a shared global scope."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stdout.write("Victoria Programming Language\nType in commands\n")
    while True:
        stdout.write(PROMPT)
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n")
            return 0
        interpreter.warnings.clear()
        try:
            result = interpreter.run_source(line, "<repl>")
        except VictoriaError as e:
            report(e.diagnostics, line, "<repl>", color, jokes, out=stdout)
            continue
        if interpreter.warnings:
            report(interpreter.warnings, line, "<repl>", color, jokes, out=stdout)
        if result is not None and not isinstance(result, Null):
            stdout.write(result.inspect() + "\n")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(prog="victoria", description="Victoria language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--plain', action='store_true', help='print diagnostics without colours')
    parser.add_argument('--no-jokes', action='store_true', help='never add jokes to diagnostics')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH, metavar='N',
                        help=f'maximum call depth (default {DEFAULT_MAX_DEPTH})')
    parser.add_argument('program', nargs='?', help='Victoria program file (.vc) to execute')
    args = parser.parse_args(argv)

    color = not args.plain and not os.environ.get("NO_COLOR") and sys.stderr.isatty()
    jokes = JokeTeller(probability=0.0) if args.no_jokes else default_jokes

    interpreter = Interpreter(debug_level=args.v, max_depth=args.max_depth)
    try:
        if not args.program:
            sys.exit(run_repl(interpreter, color, jokes))
        program_file = Path(args.program)
        if not program_file.exists():
            print(f"Error: file {program_file} not found", file=sys.stderr)
            sys.exit(1)
        sys.exit(run_file(program_file, interpreter, color, jokes))
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
