"""Static scope resolution.

Walks the program once before execution and records, for every local
variable reference, how many scopes separate it from its binding. Misuse of
`this`, `super` and `return` is reported here. Errors are collected, not
raised, so one pass surfaces every problem.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .ast import (
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    ClassStmt,
    Expr,
    ExpressionStmt,
    FunctionStmt,
    GetExpr,
    GroupingExpr,
    IfStmt,
    LiteralExpr,
    LogicalExpr,
    PrintStmt,
    ReturnStmt,
    SetExpr,
    Stmt,
    SuperExpr,
    ThisExpr,
    UnaryExpr,
    VarStmt,
    VariableExpr,
    WhileStmt,
)
from .tokens import TK_EOF, Token

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)

# Function context
FN_NONE = "none"
FN_FUNCTION = "function"
FN_INITIALIZER = "initializer"
FN_METHOD = "method"
FN_CLASS_METHOD = "class-method"

# Class context
CLASS_NONE = "none"
CLASS_CLASS = "class"
CLASS_SUBCLASS = "subclass"


class ResolveError(Exception):
    """Static error at a token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


class Resolver:
    def __init__(self, interpreter: Interpreter) -> None:
        self.interpreter = interpreter
        self.errors: list[ResolveError] = []
        # name -> True once defined, False while its initializer is resolved
        self.scopes: list[dict[str, bool]] = []
        self.globals: set[str] = set()
        self.current_function: str = FN_NONE
        self.current_class: str = CLASS_NONE

    def error(self, token: Token, msg: str) -> None:
        err = ResolveError(msg, token)
        logger.debug("resolution error: %s", err)
        self.errors.append(err)

    # ── Scopes ───────────────────────────────────────────────

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if not self.scopes:
            self.globals.add(name.lexeme)
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Variable with this name already declared in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Token) -> bool:
        """Record the hop count for expr. Unresolved names are globals."""
        for i in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[i]:
                self.interpreter.resolve(expr, len(self.scopes) - 1 - i)
                return True
        return False

    def is_known_global(self, name: str) -> bool:
        return name in self.globals or name in self.interpreter.globals

    # ── Entry ────────────────────────────────────────────────

    def resolve(self, stmts: list[Stmt]) -> None:
        for st in stmts:
            self.resolve_stmt(st)

    def resolve_function(self, fn: FunctionStmt, kind: str) -> None:
        enclosing = self.current_function
        self.current_function = kind
        self.begin_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve(fn.body)
        self.end_scope()
        self.current_function = enclosing

    # ── Statements ───────────────────────────────────────────

    def resolve_stmt(self, st: Stmt) -> None:
        if isinstance(st, BlockStmt):
            self.begin_scope()
            self.resolve(st.statements)
            self.end_scope()
            return

        if isinstance(st, VarStmt):
            self.declare(st.name)
            if st.initializer is not None:
                self.resolve_expr(st.initializer)
            self.define(st.name)
            return

        if isinstance(st, FunctionStmt):
            # Defined before the body so the function can recurse.
            self.declare(st.name)
            self.define(st.name)
            self.resolve_function(st, FN_FUNCTION)
            return

        if isinstance(st, ClassStmt):
            self.resolve_class(st)
            return

        if isinstance(st, ExpressionStmt):
            self.resolve_expr(st.expression)
            return

        if isinstance(st, IfStmt):
            self.resolve_expr(st.condition)
            self.resolve_stmt(st.then_branch)
            if st.else_branch is not None:
                self.resolve_stmt(st.else_branch)
            return

        if isinstance(st, PrintStmt):
            self.resolve_expr(st.expression)
            return

        if isinstance(st, ReturnStmt):
            if self.current_function == FN_NONE:
                self.error(st.keyword, "Cannot return from top-level code.")
            if st.value is not None:
                if self.current_function == FN_INITIALIZER:
                    self.error(
                        st.keyword, "Cannot return a value from an initializer."
                    )
                self.resolve_expr(st.value)
            return

        if isinstance(st, WhileStmt):
            self.resolve_expr(st.condition)
            self.resolve_stmt(st.body)
            return

        raise AssertionError("unknown statement " + type(st).__name__)

    def resolve_class(self, st: ClassStmt) -> None:
        enclosing = self.current_class
        self.current_class = CLASS_CLASS

        self.declare(st.name)
        self.define(st.name)

        superclass = st.superclass
        if superclass is not None:
            if superclass.name.lexeme == st.name.lexeme:
                self.error(superclass.name, "A class cannot inherit from itself.")
            self.current_class = CLASS_SUBCLASS
            found = self.resolve_local(superclass, superclass.name)
            if (
                not found
                and self.current_function == FN_NONE
                and superclass.name.lexeme != st.name.lexeme
                and not self.is_known_global(superclass.name.lexeme)
            ):
                self.error(
                    superclass.name,
                    "Undefined superclass '" + superclass.name.lexeme + "'.",
                )
            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True
        for method in st.methods:
            if method.name.lexeme == "init":
                kind = FN_INITIALIZER
            elif method.is_class_method:
                kind = FN_CLASS_METHOD
            else:
                kind = FN_METHOD
            self.resolve_function(method, kind)
        self.end_scope()

        if superclass is not None:
            self.end_scope()

        self.current_class = enclosing

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, VariableExpr):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(
                    expr.name, "Cannot read local variable in its own initializer."
                )
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, AssignExpr):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, (BinaryExpr, LogicalExpr)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
            return

        if isinstance(expr, CallExpr):
            self.resolve_expr(expr.callee)
            for arg in expr.arguments:
                self.resolve_expr(arg)
            return

        if isinstance(expr, GetExpr):
            self.resolve_expr(expr.object)
            return

        if isinstance(expr, SetExpr):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
            return

        if isinstance(expr, GroupingExpr):
            self.resolve_expr(expr.expression)
            return

        if isinstance(expr, UnaryExpr):
            self.resolve_expr(expr.right)
            return

        if isinstance(expr, LiteralExpr):
            return

        if isinstance(expr, ThisExpr):
            if self.current_class == CLASS_NONE:
                self.error(expr.keyword, "Cannot use 'this' outside of a class.")
                return
            self.resolve_local(expr, expr.keyword)
            return

        if isinstance(expr, SuperExpr):
            if self.current_class == CLASS_NONE:
                self.error(expr.keyword, "Cannot use 'super' outside of a class.")
                return
            if self.current_class != CLASS_SUBCLASS:
                self.error(
                    expr.keyword, "Cannot use 'super' in a class with no superclass."
                )
                return
            self.resolve_local(expr, expr.keyword)
            return

        raise AssertionError("unknown expression " + type(expr).__name__)


def resolve(interpreter: Interpreter, stmts: list[Stmt]) -> list[ResolveError]:
    """Resolve a parsed program into interpreter's side-table. Returns errors (empty = ok)."""
    resolver = Resolver(interpreter)
    resolver.resolve(stmts)
    return resolver.errors
