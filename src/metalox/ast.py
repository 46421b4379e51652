"""Metalox AST — parse-time node definitions.

Nodes compare and hash by identity: the interpreter keys its resolution
side-table on the node object, so two textually equal references to the same
name stay distinct.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(eq=False)
class Expr:
    """Base for all expressions."""


@dataclass(eq=False)
class AssignExpr(Expr):
    """name = value."""

    name: Token
    value: Expr


@dataclass(eq=False)
class BinaryExpr(Expr):
    """left op right, for arithmetic, comparison and equality."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class CallExpr(Expr):
    """callee(arguments). paren is the closing ')' for diagnostics."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass(eq=False)
class GetExpr(Expr):
    """object.name."""

    object: Expr
    name: Token


@dataclass(eq=False)
class GroupingExpr(Expr):
    """( expression )."""

    expression: Expr


@dataclass(eq=False)
class LiteralExpr(Expr):
    """nil, true, false, number or string constant."""

    value: object


@dataclass(eq=False)
class LogicalExpr(Expr):
    """left and/or right — short-circuiting."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class SetExpr(Expr):
    """object.name = value."""

    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class SuperExpr(Expr):
    """super.method."""

    keyword: Token
    method: Token


@dataclass(eq=False)
class ThisExpr(Expr):
    keyword: Token


@dataclass(eq=False)
class UnaryExpr(Expr):
    """! right, - right."""

    operator: Token
    right: Expr


@dataclass(eq=False)
class VariableExpr(Expr):
    name: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(eq=False)
class Stmt:
    """Base for all statements."""


@dataclass(eq=False)
class BlockStmt(Stmt):
    """{ statements }."""

    statements: list[Stmt]


@dataclass(eq=False)
class FunctionStmt(Stmt):
    """fun name(params) { body }. is_class_method marks 'class' members."""

    name: Token
    params: list[Token]
    body: list[Stmt]
    is_class_method: bool = False


@dataclass(eq=False)
class ClassStmt(Stmt):
    """class Name < Superclass { methods }."""

    name: Token
    superclass: VariableExpr | None
    methods: list[FunctionStmt]


@dataclass(eq=False)
class ExpressionStmt(Stmt):
    expression: Expr


@dataclass(eq=False)
class IfStmt(Stmt):
    """if (condition) then_branch else else_branch."""

    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(eq=False)
class PrintStmt(Stmt):
    expression: Expr


@dataclass(eq=False)
class ReturnStmt(Stmt):
    """return value;. keyword is the 'return' token for diagnostics."""

    keyword: Token
    value: Expr | None


@dataclass(eq=False)
class VarStmt(Stmt):
    """var name = initializer;."""

    name: Token
    initializer: Expr | None


@dataclass(eq=False)
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt
