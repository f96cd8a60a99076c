"""Command line entry point: run source files, or start the REPL."""
import argparse
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .errors import LispError
from .evaluator import evaluate
from .parser import parse_many
from .printer import to_string
from .repl import Repl


def _get_log_level():
    """Read the log level from the LOGLEVEL environment variable, WARNING by default."""
    level = getattr(logging, os.getenv('LOGLEVEL', '').upper(), None)
    if isinstance(level, int):
        return level
    return logging.WARNING


def run_files(paths, env=None):
    """Evaluate every expression of every file in one shared environment.

    Return the value of the last expression and the final environment.

    """
    value, env = None, env or {}
    for path in paths:
        for expr in parse_many(Path(path).read_text(encoding='utf-8')):
            value, env = evaluate(expr, env)
    return value, env


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='exlisp',
        description='ExLisp - A simple Lisp interpreter',
    )
    parser.add_argument(
        '-v', '--version',
        action='version',
        version='ExLisp version %s' % __version__,
    )
    parser.add_argument(
        'files',
        nargs='*',
        type=Path,
        help='Source files to evaluate; the REPL starts when none are given',
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_get_log_level(),
        format='%(message)s',
        stream=sys.stderr,
    )

    if not args.files:
        Repl().run()
        return 0

    try:
        value, _ = run_files(args.files)
    except (LispError, OSError, RecursionError, UnicodeDecodeError) as e:
        logging.error('Error: %s', e)
        return 1
    print(to_string(value))
    return 0


if __name__ == '__main__':
    sys.exit(main())
