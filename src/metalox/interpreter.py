"""Metalox interpreter — evaluates a resolved program by walking its AST.

Statement execution returns an outcome instead of raising for `return`:
None means normal completion, a `Returning` carries the value back up to the
nearest function call. Runtime faults are `LoxRuntimeError` exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import sys
from typing import Mapping, TextIO

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
from .environment import Environment
from .errors import (
    ArityMismatch,
    DivisionByZero,
    LoxRuntimeError,
    LoxTypeError,
    StackOverflow,
    UndefinedProperty,
)
from .natives import DEFAULT_NATIVES
from .runtime import (
    LoxCallable,
    LoxClass,
    LoxFunction,
    LoxInstance,
    LoxMetaclass,
    get_property,
    is_equal,
    is_truthy,
    set_property,
    stringify,
)
from .tokens import Token

logger = logging.getLogger(__name__)


@dataclass
class Returning:
    """Outcome of a statement that executed `return`."""

    value: object


class Interpreter:
    def __init__(
        self,
        *,
        stdout: TextIO | None = None,
        natives: Mapping[str, LoxCallable] | None = None,
    ):
        self.stdout: TextIO = stdout if stdout is not None else sys.stdout
        self.globals = Environment()
        self.environment = self.globals
        # Resolution side-table: expression node -> scope hops.
        self.locals: dict[Expr, int] = {}
        # Innermost call in progress, blamed when the host stack runs out.
        self.call_site: Token | None = None

        for name, native in (natives if natives is not None else DEFAULT_NATIVES).items():
            logger.debug("registering native %s", name)
            self.globals.define(name, native)

    def resolve(self, expr: Expr, depth: int) -> None:
        self.locals[expr] = depth

    # ---- Running -----------------------------------------------------------

    def interpret(self, stmts: list[Stmt]) -> LoxRuntimeError | None:
        """Execute top-level statements in order. Returns the fault that stopped the run, if any."""
        try:
            for st in stmts:
                self.execute(st)
        except LoxRuntimeError as e:
            logger.debug("runtime error at line %d: %s", e.line, e.msg)
            return e
        except RecursionError:
            if self.call_site is None:
                raise
            fault = StackOverflow(self.call_site, "Stack overflow.")
            logger.debug("stack overflow at line %d", fault.line)
            self.environment = self.globals
            return fault
        return None

    # ---- Statements --------------------------------------------------------

    def execute_block(self, stmts: list[Stmt], env: Environment) -> Returning | None:
        previous = self.environment
        self.environment = env
        try:
            for st in stmts:
                outcome = self.execute(st)
                if outcome is not None:
                    return outcome
            return None
        finally:
            self.environment = previous

    def execute(self, st: Stmt) -> Returning | None:
        if isinstance(st, ExpressionStmt):
            self.evaluate(st.expression)
            return None

        if isinstance(st, PrintStmt):
            value = self.evaluate(st.expression)
            self.stdout.write(stringify(value) + "\n")
            return None

        if isinstance(st, VarStmt):
            value = None
            if st.initializer is not None:
                value = self.evaluate(st.initializer)
            self.environment.define(st.name.lexeme, value)
            return None

        if isinstance(st, BlockStmt):
            return self.execute_block(st.statements, Environment(self.environment))

        if isinstance(st, IfStmt):
            if is_truthy(self.evaluate(st.condition)):
                return self.execute(st.then_branch)
            if st.else_branch is not None:
                return self.execute(st.else_branch)
            return None

        if isinstance(st, WhileStmt):
            while is_truthy(self.evaluate(st.condition)):
                outcome = self.execute(st.body)
                if outcome is not None:
                    return outcome
            return None

        if isinstance(st, FunctionStmt):
            fn = LoxFunction(st, self.environment, False)
            self.environment.define(st.name.lexeme, fn)
            return None

        if isinstance(st, ReturnStmt):
            value = None
            if st.value is not None:
                value = self.evaluate(st.value)
            return Returning(value)

        if isinstance(st, ClassStmt):
            self._execute_class(st)
            return None

        raise AssertionError("unknown statement " + type(st).__name__)

    def _execute_class(self, st: ClassStmt) -> None:
        superclass: LoxClass | None = None
        if st.superclass is not None:
            value = self.evaluate(st.superclass)
            if not isinstance(value, LoxClass):
                raise LoxTypeError(st.superclass.name, "Superclass must be a class.")
            superclass = value

        self.environment.define(st.name.lexeme, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        class_methods: dict[str, LoxFunction] = {}
        for method in st.methods:
            fn = LoxFunction(method, self.environment, method.name.lexeme == "init")
            if method.is_class_method:
                class_methods[method.name.lexeme] = fn
            else:
                methods[method.name.lexeme] = fn

        metaclass = LoxMetaclass(st.name.lexeme, None, class_methods)
        klass = LoxClass(st.name.lexeme, superclass, methods, metaclass)
        logger.debug(
            "class %s: %d methods, %d class methods, superclass %s",
            klass.name,
            len(methods),
            len(class_methods),
            superclass.name if superclass is not None else None,
        )

        if superclass is not None:
            assert self.environment.enclosing is not None
            self.environment = self.environment.enclosing
        self.environment.assign(st.name, klass)

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> object:
        if isinstance(expr, LiteralExpr):
            return expr.value

        if isinstance(expr, GroupingExpr):
            return self.evaluate(expr.expression)

        if isinstance(expr, VariableExpr):
            return self._look_up_variable(expr.name, expr)

        if isinstance(expr, ThisExpr):
            return self._look_up_variable(expr.keyword, expr)

        if isinstance(expr, AssignExpr):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        if isinstance(expr, LogicalExpr):
            left = self.evaluate(expr.left)
            if expr.operator.lexeme == "or":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, UnaryExpr):
            right = self.evaluate(expr.right)
            if expr.operator.lexeme == "!":
                return is_truthy(right)
            if expr.operator.lexeme == "-":
                _check_number_operand(expr.operator, right)
                return -right
            raise AssertionError("unknown unary operator " + expr.operator.lexeme)

        if isinstance(expr, BinaryExpr):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._eval_binary(expr.operator, left, right)

        if isinstance(expr, CallExpr):
            return self._eval_call(expr)

        if isinstance(expr, GetExpr):
            return get_property(self.evaluate(expr.object), expr.name)

        if isinstance(expr, SetExpr):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, (LoxInstance, LoxClass, LoxMetaclass)):
                raise LoxTypeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            set_property(obj, expr.name, value)
            return value

        if isinstance(expr, SuperExpr):
            return self._eval_super(expr)

        raise AssertionError("unknown expression " + type(expr).__name__)

    def _look_up_variable(self, name: Token, expr: Expr) -> object:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _eval_call(self, expr: CallExpr) -> object:
        callee = self.evaluate(expr.callee)
        args = [self.evaluate(arg) for arg in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxTypeError(expr.paren, "Can only call functions and classes.")
        if len(args) != callee.arity():
            raise ArityMismatch(
                expr.paren,
                "Expected "
                + str(callee.arity())
                + " arguments but got "
                + str(len(args))
                + ".",
            )
        self.call_site = expr.paren
        return callee.call(self, args)

    def _eval_super(self, expr: SuperExpr) -> object:
        distance = self.locals[expr]
        superclass = self.environment.get_at(distance, "super")
        receiver = self.environment.get_at(distance - 1, "this")
        assert isinstance(superclass, LoxClass)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise UndefinedProperty(
                expr.method, "Undefined property '" + expr.method.lexeme + "'."
            )
        return method.bind(receiver)

    def _eval_binary(self, op: Token, left: object, right: object) -> object:
        kind = op.lexeme
        if kind == "+":
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxTypeError(op, "Operands must be two numbers or two strings.")

        # Every other operator, equality included, needs two numbers.
        _check_number_operands(op, left, right)
        assert isinstance(left, float) and isinstance(right, float)
        if kind == "-":
            return left - right
        if kind == "*":
            return left * right
        if kind == "/":
            if right == 0.0:
                raise DivisionByZero(op, "Divided by zero.")
            return left / right
        if kind == ">":
            return left > right
        if kind == ">=":
            return left >= right
        if kind == "<":
            return left < right
        if kind == "<=":
            return left <= right
        if kind == "==":
            return is_equal(left, right)
        if kind == "!=":
            return not is_equal(left, right)
        raise AssertionError("unknown binary operator " + kind)


def _check_number_operand(op: Token, operand: object) -> None:
    if isinstance(operand, float):
        return
    raise LoxTypeError(op, "Operand must be a number.")


def _check_number_operands(op: Token, left: object, right: object) -> None:
    if isinstance(left, float) and isinstance(right, float):
        return
    raise LoxTypeError(op, "Operands must be numbers.")
