"""Runtime diagnostics raised while evaluating a resolved program."""

from __future__ import annotations

from .tokens import Token


class LoxRuntimeError(Exception):
    """Base error for evaluation faults. Carries the offending token."""

    def __init__(self, token: Token, msg: str):
        super().__init__(msg)
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line

    def report(self) -> str:
        return self.msg + "\n[line " + str(self.line) + "]"


class UndefinedVariable(LoxRuntimeError):
    """Name not bound in any enclosing scope, globals included."""


class UndefinedProperty(LoxRuntimeError):
    """Property or method missing on an instance, class or superclass chain."""


class LoxTypeError(LoxRuntimeError):
    """Operand, callee or property target of the wrong kind."""


class ArityMismatch(LoxRuntimeError):
    """Call argument count differs from the callee's arity."""


class DivisionByZero(LoxRuntimeError):
    pass


class StackOverflow(LoxRuntimeError):
    """Call depth exhausted the host stack."""
