"""Environment chain tests."""

import pytest

from metalox.environment import Environment
from metalox.errors import UndefinedVariable
from metalox.tokens import TK_IDENT, Token


def _tok(name: str, line: int = 1) -> Token:
    return Token(TK_IDENT, name, line)


def test_define_overwrites_in_same_scope():
    env = Environment()
    env.define("a", 1.0)
    env.define("a", 2.0)
    assert env.get(_tok("a")) == 2.0


def test_get_walks_enclosing_scopes():
    outer = Environment()
    outer.define("a", "outer")
    inner = Environment(Environment(outer))
    assert inner.get(_tok("a")) == "outer"


def test_get_undefined_raises_with_token():
    env = Environment(Environment())
    tok = _tok("missing", 7)
    with pytest.raises(UndefinedVariable) as exc:
        env.get(tok)
    assert exc.value.token is tok
    assert exc.value.msg == "Undefined variable 'missing'."


def test_assign_updates_nearest_existing_binding():
    outer = Environment()
    outer.define("a", 1.0)
    inner = Environment(outer)
    inner.assign(_tok("a"), 5.0)
    assert outer.values["a"] == 5.0
    assert "a" not in inner.values


def test_assign_undefined_raises():
    with pytest.raises(UndefinedVariable):
        Environment().assign(_tok("nope"), 1.0)


def test_get_at_hops_exactly_distance_links():
    g = Environment()
    g.define("x", "global")
    e1 = Environment(g)
    e1.define("x", "one")
    e2 = Environment(e1)
    e2.define("x", "two")
    e3 = Environment(e2)
    assert e3.get_at(1, "x") == "two"
    assert e3.get_at(2, "x") == "one"
    assert e3.get_at(3, "x") == "global"


def test_assign_at_writes_only_target_scope():
    g = Environment()
    g.define("x", 0.0)
    e1 = Environment(g)
    e1.define("x", 1.0)
    e2 = Environment(e1)
    e2.assign_at(2, _tok("x"), 9.0)
    assert g.values["x"] == 9.0
    assert e1.values["x"] == 1.0


def test_contains_checks_only_this_scope():
    g = Environment()
    g.define("a", None)
    inner = Environment(g)
    assert "a" in g
    assert "a" not in inner
