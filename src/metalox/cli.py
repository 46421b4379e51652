"""Metalox CLI — run a script file or an interactive prompt."""

from __future__ import annotations

import logging
import os
import sys

from . import EXIT_OK, EXIT_USAGE, Interpreter, run_source


USAGE: str = """\
metalox [OPTIONS] [FILE]

Run a Metalox program, or start an interactive prompt when FILE is omitted.

Options:
  --verbose   Log interpreter internals to stderr
  --help      Show this help message

Environment:
  METALOX_LOG_LEVEL   Log level name used when --verbose is absent (default WARNING)
"""

logger = logging.getLogger(__name__)

# Each script-level call costs a handful of Python frames.
RECURSION_LIMIT = 10_000


def _configure_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("METALOX_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, name, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s"
    )


def _report(reports: list[str]) -> None:
    for r in reports:
        print(r, file=sys.stderr)


def run_file(path: str) -> int:
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("metalox: " + path + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("metalox: " + path + ": " + str(e), file=sys.stderr)
        return 1
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("metalox: " + path + ": invalid utf-8", file=sys.stderr)
        return 1

    logger.debug("running %s (%d bytes)", path, len(raw))
    code, reports = run_source(Interpreter(), source)
    _report(reports)
    return code


def run_prompt() -> int:
    """Read-eval-print loop. Errors are reported and the loop continues."""
    interpreter = Interpreter()
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            return EXIT_OK
        code, reports = run_source(interpreter, line)
        if code != EXIT_OK:
            logger.debug("prompt line failed with exit code %d", code)
        _report(reports)


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    verbose = False
    for arg in args:
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--verbose" or arg == "-v":
            verbose = True
        elif arg.startswith("-"):
            print("metalox: unknown flag '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE
        elif filepath == "":
            filepath = arg
        else:
            print("metalox: unexpected argument '" + arg + "'", file=sys.stderr)
            return EXIT_USAGE

    _configure_logging(verbose)
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)
    if filepath == "":
        return run_prompt()
    return run_file(filepath)


if __name__ == "__main__":
    sys.exit(main())
