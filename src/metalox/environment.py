"""Lexical scopes: a chain of name → value maps."""

from __future__ import annotations

from .errors import UndefinedVariable
from .tokens import Token


class Environment:
    """One scope. Closures and nested blocks share it by reference."""

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, object] = {}
        self.enclosing: Environment | None = enclosing

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def define(self, name: str, value: object) -> None:
        self.values[name] = value

    def get(self, name: Token) -> object:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise UndefinedVariable(name, "Undefined variable '" + name.lexeme + "'.")

    def assign(self, name: Token, value: object) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise UndefinedVariable(name, "Undefined variable '" + name.lexeme + "'.")

    def ancestor(self, distance: int) -> Environment:
        """Hop exactly `distance` enclosing links from this scope."""
        env = self
        for _ in range(distance):
            assert env.enclosing is not None, "resolved distance past global scope"
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> object:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: object) -> None:
        self.ancestor(distance).values[name.lexeme] = value
