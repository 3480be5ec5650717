import math

import pytest

from statcore.expression import (
    BinaryOp,
    Call,
    Number,
    UnaryMinus,
    Variable,
    compile_expression,
    evaluate,
    parse,
    tokenize,
    variables_in,
)


def test_tokenize_numbers_names_and_operators():
    assert tokenize("0.6*X + 1e-5 - Y_2") == ["0.6", "*", "X", "+", "1e-5", "-", "Y_2"]
    assert tokenize("2-3") == ["2", "-", "3"]


def test_tokenize_reports_unknown_characters():
    diagnostics = []
    assert tokenize("X $ Y", diagnostics) == ["X", "Y"]
    assert len(diagnostics) == 1


def test_precedence_and_associativity():
    assert evaluate("2 + 3 * 4", {}) == 14.0
    assert evaluate("(2 + 3) * 4", {}) == 20.0
    assert evaluate("10 - 4 - 3", {}) == 3.0
    assert evaluate("2 ^ 3 ^ 2", {}) == 64.0
    assert evaluate("-2 ^ 2", {}) == 4.0
    assert evaluate("2 * -3", {}) == -6.0
    assert evaluate("X^2", {"X": 3.0}) == 9.0


def test_ast_shape():
    node = parse("-X + sqrt(4)")
    assert node == BinaryOp("+", UnaryMinus(Variable("X")), Call("sqrt", Number(4.0)))


def test_variables_and_functions():
    env = {"X": 9.0, "Y": -2.0}
    assert evaluate("sqrt(X) + abs(Y)", env) == 5.0
    assert evaluate("LN(exp(2))", env) == pytest.approx(2.0)
    assert evaluate("sin(0) + cos(0)", env) == 1.0
    assert variables_in(parse("X * (Y + Z) + log(W)")) == {"X", "Y", "Z", "W"}


def test_permissive_semantics():
    assert evaluate("X / 0", {"X": 3.0}) == 0.0
    assert evaluate("missing + 1", {}) == 1.0
    assert evaluate("sqrt(-4)", {}) == 0.0
    assert evaluate("log(0)", {}) == 0.0
    assert evaluate("0 ^ -1", {}) == 0.0
    assert evaluate("(-8) ^ 0.5", {}) == 0.0
    assert evaluate("exp(1000)", {}) == pytest.approx(math.exp(700.0))
    assert evaluate("10 ^ 400", {}) == 0.0
    assert evaluate("", {}) == 0.0


def test_malformed_input_degrades_with_diagnostics():
    compiled = compile_expression("(X + 2")
    assert compiled.evaluate({"X": 1.0}) == 3.0
    assert compiled.diagnostics
    trailing = compile_expression("X Y")
    assert trailing.evaluate({"X": 4.0, "Y": 5.0}) == 4.0
    assert any("trailing" in d for d in trailing.diagnostics)
    dangling = compile_expression("X +")
    assert dangling.evaluate({"X": 2.0}) == 2.0


def test_number_prefix_parsing():
    assert evaluate("1.2.3", {}) == 1.2
    assert evaluate(".5 * 4", {}) == 2.0


def test_compiled_expression_unbound_variables():
    compiled = compile_expression("A + B * C")
    assert compiled.variables == {"A", "B", "C"}
    assert compiled.unbound_variables(["A", "C"]) == ["B"]
    assert compiled.evaluate({"A": 1.0, "B": 2.0, "C": 3.0}) == 7.0


def test_function_name_without_call_is_a_variable():
    assert evaluate("sqrt + 1", {"sqrt": 2.0}) == 3.0


def test_long_operator_chain_evaluates():
    source = " + ".join(["X"] * 2000)
    assert evaluate(source, {"X": 1.0}) == 2000.0
    assert variables_in(parse(source)) == frozenset({"X"})
    assert compile_expression(source).unbound_variables(["X"]) == []
