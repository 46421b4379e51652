"""Metalox tokenizer, parser, resolver and interpreter — public API."""

from __future__ import annotations

from dataclasses import dataclass
import io

from .ast import Stmt
from .errors import LoxRuntimeError as LoxRuntimeError
from .interpreter import Interpreter as Interpreter
from .parse import ParseError as ParseError, Parser
from .resolver import ResolveError as ResolveError, resolve as resolve
from .tokens import TokenizeError as TokenizeError, tokenize

# sysexits codes, as reported by the command-line driver
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_RUNTIME_ERROR = 70


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str


def parse(source: str) -> list[Stmt]:
    """Tokenize and parse Metalox source into a statement list."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse_program()


def run_source(interpreter: Interpreter, source: str) -> tuple[int, list[str]]:
    """Run source on an existing interpreter. Returns (exit code, error reports)."""
    try:
        stmts = parse(source)
    except (TokenizeError, ParseError) as e:
        return EXIT_STATIC_ERROR, [str(e)]
    errors = resolve(interpreter, stmts)
    if errors:
        return EXIT_STATIC_ERROR, [str(e) for e in errors]
    fault = interpreter.interpret(stmts)
    if fault is not None:
        return EXIT_RUNTIME_ERROR, [fault.report()]
    return EXIT_OK, []


def run(source: str) -> RunResult:
    """Tokenize, parse, resolve and run source on a fresh interpreter."""
    out = io.StringIO()
    interpreter = Interpreter(stdout=out)
    code, reports = run_source(interpreter, source)
    err = "".join(r + "\n" for r in reports)
    return RunResult(code, out.getvalue(), err)
