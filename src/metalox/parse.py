"""Metalox parser — recursive descent, one method per grammar production."""

from __future__ import annotations

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
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_STRING, Token

MAX_ARGS = 8

EQUALITY_OPS: set[str] = {"==", "!="}

COMPARE_OPS: set[str] = {">", ">=", "<", "<="}


class ParseError(Exception):
    """Parse error at a token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


class Parser:
    """Recursive descent parser for Metalox."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, lexeme: str) -> bool:
        tok = self.current()
        return tok.type != TK_STRING and tok.lexeme == lexeme

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def match(self, *lexemes: str) -> bool:
        for lexeme in lexemes:
            if self.at(lexeme):
                self.advance()
                return True
        return False

    def expect(self, lexeme: str, msg: str) -> Token:
        if self.at(lexeme):
            return self.advance()
        raise self.error(msg)

    def expect_ident(self, msg: str) -> Token:
        if self.at_type(TK_IDENT):
            return self.advance()
        raise self.error(msg)

    def expect_end(self, msg: str) -> None:
        """Consume ';'. It may be omitted before '}' or at end of input."""
        if self.match(";"):
            return
        if self.at("}") or self.at_end():
            return
        raise self.error(msg)

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self.current())

    # ── Declarations ─────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            stmts.append(self.parse_declaration())
        return stmts

    def parse_declaration(self) -> Stmt:
        if self.match("class"):
            return self.parse_class_decl()
        if self.match("fun"):
            return self.parse_function("function")
        if self.match("var"):
            return self.parse_var_decl()
        return self.parse_stmt()

    def parse_class_decl(self) -> ClassStmt:
        name = self.expect_ident("Expect class name.")
        superclass: VariableExpr | None = None
        if self.match("<"):
            superclass = VariableExpr(self.expect_ident("Expect superclass name."))
        self.expect("{", "Expect '{' before class body.")
        methods: list[FunctionStmt] = []
        while not self.at("}") and not self.at_end():
            methods.append(self.parse_member())
        self.expect("}", "Expect '}' after class body.")
        return ClassStmt(name, superclass, methods)

    def parse_member(self) -> FunctionStmt:
        """Member = 'class' 'fun'? Function | 'fun'? Function"""
        if self.match("class"):
            self.match("fun")
            return self.parse_function("class function", is_class_method=True)
        self.match("fun")
        if not self.at_type(TK_IDENT):
            raise self.error("Expect 'class fun' or 'fun' in class body.")
        return self.parse_function("method")

    def parse_function(self, kind: str, is_class_method: bool = False) -> FunctionStmt:
        name = self.expect_ident("Expect " + kind + " name.")
        self.expect("(", "Expect '(' after " + kind + " name.")
        params: list[Token] = []
        if not self.at(")"):
            params.append(self.expect_ident("Expect parameter name."))
            while self.match(","):
                if len(params) >= MAX_ARGS:
                    raise self.error(
                        "Cannot have more than " + str(MAX_ARGS) + " parameters."
                    )
                params.append(self.expect_ident("Expect parameter name."))
        self.expect(")", "Expect ')' after parameters.")
        self.expect("{", "Expect '{' before " + kind + " body.")
        body = self.parse_block()
        return FunctionStmt(name, params, body, is_class_method)

    def parse_var_decl(self) -> VarStmt:
        name = self.expect_ident("Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.parse_expr()
        self.expect_end("Expect ';' after variable declaration.")
        return VarStmt(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.match("for"):
            return self.parse_for()
        if self.match("if"):
            return self.parse_if()
        if self.match("while"):
            return self.parse_while()
        if self.match("print"):
            value = self.parse_expr()
            self.expect_end("Expect ';' after value.")
            return PrintStmt(value)
        if self.match("return"):
            return self.parse_return()
        if self.match("{"):
            return BlockStmt(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> list[Stmt]:
        """Parse declarations up to the closing '}'; the '{' is already consumed."""
        stmts: list[Stmt] = []
        while not self.at("}") and not self.at_end():
            stmts.append(self.parse_declaration())
        self.expect("}", "Expect '}' after block.")
        return stmts

    def parse_for(self) -> Stmt:
        """Desugar for (init; cond; incr) body into a block and a while loop."""
        self.expect("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.match("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Expr | None = None
        if not self.at(";"):
            condition = self.parse_expr()
        self.expect(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(")"):
            increment = self.parse_expr()
        self.expect(")", "Expect ')' after for clauses.")

        body = self.parse_stmt()
        if increment is not None:
            body = BlockStmt([body, ExpressionStmt(increment)])
        if condition is None:
            condition = LiteralExpr(True)
        body = WhileStmt(condition, body)
        if initializer is not None:
            body = BlockStmt([initializer, body])
        return body

    def parse_if(self) -> IfStmt:
        self.expect("(", "Expect '(' after 'if'.")
        condition = self.parse_expr()
        self.expect(")", "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.parse_stmt()
        return IfStmt(condition, then_branch, else_branch)

    def parse_while(self) -> WhileStmt:
        self.expect("(", "Expect '(' after 'while'.")
        condition = self.parse_expr()
        self.expect(")", "Expect ')' after condition.")
        return WhileStmt(condition, self.parse_stmt())

    def parse_return(self) -> ReturnStmt:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(";") and not self.at("}") and not self.at_end():
            value = self.parse_expr()
        self.expect_end("Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def parse_expr_stmt(self) -> ExpressionStmt:
        expr = self.parse_expr()
        self.expect_end("Expect ';' after expression.")
        return ExpressionStmt(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or"""
        expr = self.parse_or()
        if self.at("="):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, VariableExpr):
                return AssignExpr(expr.name, value)
            if isinstance(expr, GetExpr):
                return SetExpr(expr.object, expr.name, value)
            raise ParseError("Invalid assignment target.", equals)
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.at("or"):
            op = self.advance()
            left = LogicalExpr(left, op, self.parse_and())
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.at("and"):
            op = self.advance()
            left = LogicalExpr(left, op, self.parse_equality())
        return left

    def parse_equality(self) -> Expr:
        left = self.parse_comparison()
        while self.current().lexeme in EQUALITY_OPS:
            op = self.advance()
            left = BinaryExpr(left, op, self.parse_comparison())
        return left

    def parse_comparison(self) -> Expr:
        left = self.parse_term()
        while self.current().lexeme in COMPARE_OPS:
            op = self.advance()
            left = BinaryExpr(left, op, self.parse_term())
        return left

    def parse_term(self) -> Expr:
        left = self.parse_factor()
        while self.at("-") or self.at("+"):
            op = self.advance()
            left = BinaryExpr(left, op, self.parse_factor())
        return left

    def parse_factor(self) -> Expr:
        left = self.parse_unary()
        while self.at("/") or self.at("*"):
            op = self.advance()
            left = BinaryExpr(left, op, self.parse_unary())
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.at("!") or self.at("-"):
            op = self.advance()
            return UnaryExpr(op, self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match("("):
                expr = self.finish_call(expr)
            elif self.match("."):
                name = self.expect_ident("Expect property name after '.'.")
                expr = GetExpr(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> CallExpr:
        args: list[Expr] = []
        if not self.at(")"):
            args.append(self.parse_expr())
            while self.match(","):
                if len(args) >= MAX_ARGS:
                    raise self.error(
                        "Cannot have more than " + str(MAX_ARGS) + " arguments."
                    )
                args.append(self.parse_expr())
        paren = self.expect(")", "Expect ')' after arguments.")
        return CallExpr(callee, paren, args)

    def parse_primary(self) -> Expr:
        tok = self.current()
        if tok.type == TK_NUMBER or tok.type == TK_STRING:
            self.advance()
            return LiteralExpr(tok.literal)
        if self.match("false"):
            return LiteralExpr(False)
        if self.match("true"):
            return LiteralExpr(True)
        if self.match("nil"):
            return LiteralExpr(None)
        if self.match("this"):
            return ThisExpr(tok)
        if self.match("super"):
            self.expect(".", "Expect '.' after 'super'.")
            method = self.expect_ident("Expect superclass method name.")
            return SuperExpr(tok, method)
        if tok.type == TK_IDENT:
            self.advance()
            return VariableExpr(tok)
        if self.match("("):
            expr = self.parse_expr()
            self.expect(")", "Expect ')' after expression.")
            return GroupingExpr(expr)
        raise self.error("Expect expression.")
