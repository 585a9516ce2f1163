import pytest

from ponscript.pon_evaluator import ExpressionEvaluator, VariableContext
from ponscript.pon_datatypes import EvalError


@pytest.fixture
def ev():
    return ExpressionEvaluator()


@pytest.fixture
def ctx():
    c = VariableContext()
    c.tmp["name"] = "Alice"
    c.tmp["hp"] = 10
    c.game["flags"] = {"met": True}
    return c


@pytest.mark.parametrize(
    "expr,expected",
    [
        ("1+1", 2),
        ("7 // 2", 3),
        ("2 ** 3", 8),
        ("-3 + 1", -2),
        ("1 < 2 < 3", True),
        ("3 > 2 > 2", False),
        ("true and 5", 5),
        ("null or 'x'", "x"),
        ("'a' if 1 == 1 else 'b'", "a"),
        ("[1, 2][1]", 2),
        ("'abc'[1:]", "bc"),
        ("'abcdef'[::2]", "ace"),
        ("[1, 2, 3, 4][3:0:-2]", [4, 2]),
        ("max(1, 4, 2)", 4),
        ("not false", True),
        ("2 in [1, 2]", True),
    ],
)
def test_evaluate_expressions(ev, ctx, expr, expected):
    assert ev.evaluate(expr, ctx) == expected


def test_reads_variable_scopes(ev, ctx):
    assert ev.evaluate("tv.name", ctx) == "Alice"
    assert ev.evaluate("tv['hp'] * 2", ctx) == 20
    assert ev.evaluate("gv.flags.met", ctx) is True
    assert ev.evaluate("sv.saveDataInfo", ctx) == []
    assert ev.evaluate("mp", ctx) is None


def test_macro_params_and_extras(ev, ctx):
    ctx.macro_params = {"who": "Bob"}
    ctx.extras["chapter"] = 3
    assert ev.evaluate("mp.who + ' ' + chapter", ctx) == "Bob 3"


def test_string_concat_renders_other_operand(ev, ctx):
    assert ev.evaluate("'HP: ' + tv.hp", ctx) == "HP: 10"
    assert ev.evaluate("'ok: ' + true", ctx) == "ok: true"


@pytest.mark.parametrize(
    "expr",
    [
        "tv.missing",
        "unknown_name",
        "__import__('os')",
        "tv.name.upper()",
        "(lambda: 1)()",
        "1 +",
        "[x for x in [1]]",
        "1 / 0",
    ],
)
def test_invalid_expressions_raise_eval_error(ev, ctx, expr):
    with pytest.raises(EvalError) as ei:
        ev.evaluate(expr, ctx)
    assert ei.value.expression == expr
    assert ei.value.cause is not None


def test_execute_assignments_and_last_value(ev, ctx):
    result = ev.execute("tv.count = 1\ntv.count += 2\ngv['seen'] = tv.count\ntv.count", ctx)
    assert result == 3
    assert ctx.tmp["count"] == 3
    assert ctx.game["seen"] == 3


def test_execute_if_statement(ev, ctx):
    ev.execute("if tv.hp > 5: tv.state = 'fine'\nelse: tv.state = 'hurt'", ctx)
    assert ctx.tmp["state"] == "fine"


def test_execute_returns_none_for_statements_only(ev, ctx):
    assert ev.execute("tv.x = 1", ctx) is None


@pytest.mark.parametrize("code", ["x = 1", "import os", "def f(): pass", "tv.name.attr = 1"])
def test_execute_rejects_disallowed_statements(ev, ctx, code):
    with pytest.raises(EvalError):
        ev.execute(code, ctx)
