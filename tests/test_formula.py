import pytest

from fxns.errors import (
    DisallowedTokenError,
    DivisionByZeroError,
    EvaluationError,
    FormulaSyntaxError,
    UnknownVariableError,
)
from fxns.formula import BinaryOp, FormulaCache, Variable, evaluate, parse_formula, validate_formula, variables_in


def test_arithmetic_precedence_and_power():
    assert evaluate("1 + 2 * 3") == 7
    assert evaluate("(1 + 2) * 3") == 9
    assert evaluate("2 ^ 3 ^ 2") == 512
    assert evaluate("-2 ^ 2") == -4
    assert evaluate("10 % 4") == 2
    assert evaluate("7 / 2") == 3.5


def test_tip_formula_matches_expected_result():
    assert evaluate("subtotal * tipPercentage / 100", {"subtotal": 3, "tipPercentage": 10}) == 0.3


def test_integral_results_are_ints():
    result = evaluate("1.5 * 2")
    assert result == 3
    assert isinstance(result, int)


def test_numeric_strings_are_coerced():
    assert evaluate("a + b", {"a": "2", "b": 3}) == 5
    assert evaluate("a * 2", {"a": " 4.5 "}) == 9


def test_plus_concatenates_text():
    assert evaluate("'Hello, ' + name", {"name": "Ada"}) == "Hello, Ada"
    assert evaluate("'n=' + 3") == "n=3"


def test_comparisons_and_logic():
    assert evaluate("amount > 100", {"amount": 150}) is True
    assert evaluate("amount > 100 && amount < 200", {"amount": 250}) is False
    assert evaluate("a == 1 or b == 2", {"a": 0, "b": 2}) is True
    assert evaluate("not flag", {"flag": False}) is True
    assert evaluate("'apple' < 'banana'") is True
    assert evaluate("'10' == 10") is True
    assert evaluate("true == 1") is False


def test_builtin_functions():
    assert evaluate("min(3, 1, 2)") == 1
    assert evaluate("max(3, 1, 2)") == 3
    assert evaluate("round(2.345, 2)") == 2.35
    assert evaluate("round(2.5)") == 3
    assert evaluate("abs(-4)") == 4
    assert evaluate("floor(2.7) + ceil(2.1)") == 5
    assert evaluate("concat('a', 1, true)") == "a1true"
    assert evaluate("len(items)", {"items": [1, 2, 3]}) == 3


def test_division_by_zero():
    with pytest.raises(DivisionByZeroError):
        evaluate("1 / 0")
    with pytest.raises(DivisionByZeroError):
        evaluate("5 % x", {"x": 0})
    with pytest.raises(DivisionByZeroError):
        evaluate("0 ^ -1")


def test_unknown_variable_suggests_close_match():
    with pytest.raises(UnknownVariableError) as excinfo:
        evaluate("subtotl * 2", {"subtotal": 1})
    assert excinfo.value.name == "subtotl"
    assert "Did you mean subtotal?" in excinfo.value.message


@pytest.mark.parametrize(
    "formula",
    [
        "__import__('os')",
        "import os",
        "a.b",
        "x = 1",
        "items[0]",
        "eval('1')",
        "open('f')",
        "lambda: 1",
        "a; b",
        "constructor",
    ],
)
def test_disallowed_tokens_raise_evaluation_errors(formula):
    with pytest.raises(EvaluationError) as excinfo:
        evaluate(formula, {"a": {"b": 1}, "items": [1], "x": 1, "b": 2})
    assert isinstance(excinfo.value, (DisallowedTokenError, FormulaSyntaxError))


def test_syntax_errors():
    for formula in ("(1 + 2", "1 +", "", "1 2", "'open"):
        with pytest.raises(FormulaSyntaxError):
            validate_formula(formula)


def test_depth_and_length_limits():
    with pytest.raises(FormulaSyntaxError):
        parse_formula("(" * 40 + "1" + ")" * 40, max_depth=32)
    with pytest.raises(FormulaSyntaxError):
        parse_formula("1 + " * 20 + "1", max_length=10)
    assert evaluate("((((1))))") == 1


def test_long_operator_chains_are_not_nesting():
    assert evaluate(" + ".join(["a"] * 33), {"a": 1}) == 33
    assert evaluate(" * ".join(["2"] * 40)) == 2**40
    # well past the interpreter's recursion limit, still under max_length
    assert evaluate("+".join(["1"] * 999)) == 999
    assert evaluate(" && ".join(["true"] * 50) + " && false") is False
    with pytest.raises(FormulaSyntaxError):
        parse_formula("-" * 40 + "1", max_depth=32)
    with pytest.raises(FormulaSyntaxError):
        parse_formula("max(" * 40 + "1" + ")" * 40, max_depth=32)


def test_ast_is_immutable_and_variables_are_listed():
    node = parse_formula("a + b * a")
    assert isinstance(node, BinaryOp)
    with pytest.raises(AttributeError):
        node.op = "-"
    assert isinstance(node.left, Variable)
    assert set(variables_in(node)) == {"a", "b"}


def test_non_numeric_operands_fail():
    with pytest.raises(EvaluationError):
        evaluate("'abc' * 2")


def test_formula_cache_reuses_parsed_trees():
    cache = FormulaCache(max_size=2)
    first = cache.get_or_parse(("tool", "step"), "a + 1")
    second = cache.get_or_parse(("tool", "step"), "a + 1")
    assert first is second
    assert cache.hits == 1 and cache.misses == 1
    cache.get_or_parse(("tool", "other"), "b")
    cache.get_or_parse(("tool", "third"), "c")
    assert len(cache) == 2
    assert cache.get_or_parse(("tool", "step"), "a + 1") is not first


def test_formula_cache_does_not_store_failures():
    cache = FormulaCache()
    with pytest.raises(FormulaSyntaxError):
        cache.get_or_parse("scope", "1 +")
    assert len(cache) == 0
