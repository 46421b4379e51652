"""Scope resolution tests."""

from metalox import Interpreter, parse, resolve
from metalox.ast import (
    AssignExpr,
    BlockStmt,
    ExpressionStmt,
    FunctionStmt,
    PrintStmt,
    ReturnStmt,
    VariableExpr,
)


def _resolve(source: str):
    """Parse and resolve. Returns (stmts, interpreter, error messages)."""
    stmts = parse(source)
    interp = Interpreter()
    errors = resolve(interp, stmts)
    return stmts, interp, [e.msg for e in errors]


def _ok(source: str):
    stmts, interp, errors = _resolve(source)
    assert errors == []
    return stmts, interp


def test_globals_are_left_unresolved():
    stmts, interp = _ok("var a = 1; print a;")
    ref = stmts[1].expression
    assert isinstance(ref, VariableExpr)
    assert ref not in interp.locals


def test_block_local_distance_zero():
    stmts, interp = _ok("{ var a = 1; print a; }")
    ref = stmts[0].statements[1].expression
    assert interp.locals[ref] == 0


def test_nested_block_distance_counts_scopes():
    stmts, interp = _ok("{ var a = 1; { { print a; } } }")
    inner = stmts[0].statements[1].statements[0].statements[0]
    assert isinstance(inner, PrintStmt)
    assert interp.locals[inner.expression] == 2


def test_closure_reference_distance():
    stmts, interp = _ok(
        """
fun outer() {
    var count = 0;
    fun inner() {
        count = count + 1;
        return count;
    }
    return inner;
}
"""
    )
    outer = stmts[0]
    inner = outer.body[1]
    assert isinstance(inner, FunctionStmt)
    assign = inner.body[0].expression
    assert isinstance(assign, AssignExpr)
    assert interp.locals[assign] == 1
    ret = inner.body[1]
    assert isinstance(ret, ReturnStmt)
    assert interp.locals[ret.value] == 1


def test_same_name_nodes_resolve_independently():
    stmts, interp = _ok("{ var a = 1; { var a = 2; print a; } print a; }")
    block = stmts[0]
    inner_ref = block.statements[1].statements[1].expression
    outer_ref = block.statements[2].expression
    assert interp.locals[inner_ref] == 0
    assert interp.locals[outer_ref] == 0
    assert inner_ref is not outer_ref


def test_method_this_and_super_distances():
    stmts, interp = _ok(
        """
class A { m() { return 1; } }
class B < A {
    m() {
        print this;
        return super.m();
    }
}
"""
    )
    method = stmts[1].methods[0]
    this_ref = method.body[0].expression
    # params scope -> this scope
    assert interp.locals[this_ref] == 1
    super_ref = method.body[1].value.callee
    # params scope -> this scope -> super scope
    assert interp.locals[super_ref] == 2


def test_self_reference_in_initializer():
    _, _, errors = _resolve("{ var a = a; }")
    assert errors == ["Cannot read local variable in its own initializer."]


def test_global_self_reference_is_not_static_error():
    _, _, errors = _resolve("var a = a;")
    assert errors == []


def test_duplicate_local_declaration():
    _, _, errors = _resolve("{ var a = 1; var a = 2; }")
    assert errors == ["Variable with this name already declared in this scope."]


def test_duplicate_parameter():
    _, _, errors = _resolve("fun f(a, a) {}")
    assert errors == ["Variable with this name already declared in this scope."]


def test_duplicate_global_is_allowed():
    _, _, errors = _resolve("var a = 1; var a = 2;")
    assert errors == []


def test_return_outside_function():
    _, _, errors = _resolve("return 1;")
    assert errors == ["Cannot return from top-level code."]


def test_return_value_from_initializer():
    _, _, errors = _resolve("class A { init() { return 1; } }")
    assert errors == ["Cannot return a value from an initializer."]


def test_bare_return_in_initializer_is_fine():
    _, _, errors = _resolve("class A { init() { return; } }")
    assert errors == []


def test_this_outside_class():
    _, _, errors = _resolve("print this; fun f() { return this; }")
    assert errors == [
        "Cannot use 'this' outside of a class.",
        "Cannot use 'this' outside of a class.",
    ]


def test_this_in_class_method_is_allowed():
    _, _, errors = _resolve("class A { class make() { return this(); } }")
    assert errors == []


def test_super_outside_class_and_without_superclass():
    _, _, errors = _resolve("super.m(); class A { m() { super.m(); } }")
    assert errors == [
        "Cannot use 'super' outside of a class.",
        "Cannot use 'super' in a class with no superclass.",
    ]


def test_class_cannot_inherit_from_itself():
    _, _, errors = _resolve("class A < A {}")
    assert errors == ["A class cannot inherit from itself."]


def test_unknown_superclass_at_top_level():
    _, _, errors = _resolve("class B < Missing {}")
    assert errors == ["Undefined superclass 'Missing'."]


def test_superclass_declared_later_inside_function_is_not_flagged():
    _, _, errors = _resolve(
        """
fun make() { class B < A {} return B; }
class A {}
"""
    )
    assert errors == []


def test_superclass_from_interpreter_globals():
    interp = Interpreter()
    assert resolve(interp, parse("class A {}")) == []
    interp.interpret(parse("class A {}"))
    assert resolve(interp, parse("class B < A {}")) == []


def test_resolution_continues_after_errors():
    _, _, errors = _resolve(
        """
return 1;
{ var x = x; }
class C < C {}
print this;
"""
    )
    assert len(errors) == 4


def test_local_function_can_recurse():
    stmts, interp = _ok("{ fun f(n) { return f(n); } }")
    fn = stmts[0].statements[0]
    call = fn.body[0].value
    assert interp.locals[call.callee] == 1


def test_block_and_expression_statement_shapes():
    stmts, _ = _ok("{ 1; }")
    assert isinstance(stmts[0], BlockStmt)
    assert isinstance(stmts[0].statements[0], ExpressionStmt)
