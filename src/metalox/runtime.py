"""Metalox runtime — callables, classes, metaclasses and instances.

Values are plain Python objects: None is nil, bool, float, str, plus the
classes below. A class is an instance of its metaclass: it carries its own
field map, and its class methods live in the metaclass's method table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .ast import FunctionStmt
from .environment import Environment
from .errors import LoxTypeError, UndefinedProperty
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


# ============================================================
# Callables
# ============================================================


class LoxCallable:
    """A value invocable with exactly arity() arguments."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    """Host-provided function."""

    def __init__(
        self,
        name: str,
        arity: int,
        fn: Callable[[Interpreter, list[object]], object],
    ):
        self.name = name
        self._arity = arity
        self._fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        return self._fn(interpreter, arguments)

    def __str__(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    """User-defined function or method closed over its defining scope."""

    def __init__(
        self, declaration: FunctionStmt, closure: Environment, is_initializer: bool
    ):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        outcome = interpreter.execute_block(self.declaration.body, env)
        # Initializers always hand back the receiver, even after a bare return.
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if outcome is None:
            return None
        return outcome.value

    def bind(self, receiver: object) -> LoxFunction:
        """Return a new function whose scope defines `this` as receiver."""
        env = Environment(self.closure)
        env.define("this", receiver)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def __str__(self) -> str:
        return "<fn " + self.name + ">"


# ============================================================
# Object model
# ============================================================


class LoxClassLike:
    """Capability shared by classes and metaclasses: a name and method lookup."""

    name: str

    def find_method(self, name: str) -> LoxFunction | None:
        raise NotImplementedError


class LoxInstance:
    def __init__(self, klass: LoxClassLike):
        self.klass: LoxClassLike = klass
        self.fields: dict[str, object] = {}

    def __str__(self) -> str:
        return self.klass.name + " instance"


def _instantiate(
    klass: LoxClass | LoxMetaclass, interpreter: Interpreter, arguments: list[object]
) -> LoxInstance:
    instance = LoxInstance(klass)
    initializer = klass.find_method("init")
    if initializer is not None:
        initializer.bind(instance).call(interpreter, arguments)
    return instance


def _initializer_arity(klass: LoxClassLike) -> int:
    initializer = klass.find_method("init")
    if initializer is None:
        return 0
    return initializer.arity()


class LoxMetaclass(LoxCallable, LoxClassLike):
    """The class of a class. Holds class-level methods."""

    def __init__(
        self,
        name: str,
        superclass: LoxClass | None,
        methods: dict[str, LoxFunction],
    ):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.fields: dict[str, object] = {}

    def find_method(self, name: str) -> LoxFunction | None:
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    def arity(self) -> int:
        return _initializer_arity(self)

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        return _instantiate(self, interpreter, arguments)

    def __str__(self) -> str:
        return self.name + " metaclass"


class LoxClass(LoxCallable, LoxClassLike):
    """User class. Also an instance of its metaclass via `metaclass` and `fields`."""

    def __init__(
        self,
        name: str,
        superclass: LoxClass | None,
        methods: dict[str, LoxFunction],
        metaclass: LoxMetaclass,
    ):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.metaclass = metaclass
        self.fields: dict[str, object] = {}

    def find_method(self, name: str) -> LoxFunction | None:
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    def arity(self) -> int:
        return _initializer_arity(self)

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        return _instantiate(self, interpreter, arguments)

    def __str__(self) -> str:
        return self.name


# ============================================================
# Property access
# ============================================================


def _undefined_property(name: Token) -> UndefinedProperty:
    return UndefinedProperty(name, "Undefined property '" + name.lexeme + "'.")


def get_property(obj: object, name: Token) -> object:
    """Read obj.name: the `klass` pseudo-field, then fields, then bound methods."""
    if isinstance(obj, LoxInstance):
        if name.lexeme == "klass":
            return obj.klass
        if name.lexeme in obj.fields:
            return obj.fields[name.lexeme]
        method = obj.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(obj)
        # Fall back to the class object itself: class fields and class methods.
        if isinstance(obj.klass, LoxClass):
            return get_property(obj.klass, name)
        raise _undefined_property(name)
    if isinstance(obj, LoxClass):
        if name.lexeme == "klass":
            return obj.metaclass
        if name.lexeme in obj.fields:
            return obj.fields[name.lexeme]
        method = obj.metaclass.find_method(name.lexeme)
        if method is not None:
            return method.bind(obj)
        raise _undefined_property(name)
    if isinstance(obj, LoxMetaclass):
        if name.lexeme == "klass":
            return None
        if name.lexeme in obj.fields:
            return obj.fields[name.lexeme]
        method = obj.find_method(name.lexeme)
        if method is not None:
            return method.bind(obj)
        raise _undefined_property(name)
    raise LoxTypeError(name, "Only instances have properties.")


def set_property(obj: object, name: Token, value: object) -> None:
    """Write obj.name into the field map, creating the field if absent."""
    if isinstance(obj, (LoxInstance, LoxClass, LoxMetaclass)):
        obj.fields[name.lexeme] = value
        return
    raise LoxTypeError(name, "Only instances have fields.")


# ============================================================
# Value helpers
# ============================================================


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: object, b: object) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if isinstance(a, (bool, float, str)) or isinstance(b, (bool, float, str)):
        return type(a) is type(b) and a == b
    return a is b


def stringify(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    return str(value)
