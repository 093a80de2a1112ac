import logging

import pytest

from labflow.utils.formulas import (
    FormulaError,
    compute,
    evaluate_formula,
    formula_placeholders,
    substitute_parameters,
)


def test_placeholders_in_first_appearance_order():
    assert formula_placeholders("${b} * ${a} + ${b}") == ["b", "a"]
    assert formula_placeholders("") == []


def test_substitute_only_numeric_values():
    out = substitute_parameters("${n} + ${label} + ${flag}", {"n": 3, "label": "x", "flag": True})
    assert out == "(3) + ${label} + ${flag}"


@pytest.mark.parametrize(
    "formula,params,expected",
    [
        ("${volume} * 2", {"volume": 5}, 10.0),
        ("${a} + ${b} / 4", {"a": 1, "b": 2}, 1.5),
        ("-${a} ** 2", {"a": 3}, -9.0),
        ("${a} - ${b}", {"a": 1, "b": -2}, 3.0),
        ("(${n} + 1) * 1.5", {"n": 3}, 6.0),
        ("max(${a}, ${b}) + abs(-1)", {"a": 2, "b": 7}, 8.0),
        ("round(${x} / 3, 2)", {"x": 10}, 3.33),
        ("7 // 2 + 7 % 2", {}, 4.0),
    ],
)
def test_evaluate_formula(formula, params, expected):
    assert evaluate_formula(formula, params) == pytest.approx(expected)


@pytest.mark.parametrize(
    "formula,params",
    [
        ("${missing} * 2", {}),
        ("${flag} + 1", {"flag": True}),
        ("${name} + 1", {"name": "abc"}),
        ("1 / 0", {}),
        ("2 +", {}),
        ("__import__('os').system('echo hi')", {}),
        ("(1).real", {}),
        ("'a' * 3", {}),
        ("2 ** 1000", {}),
        ("(((9 ** 99) ** 99) ** 99) ** 99", {}),
        ("", {}),
    ],
)
def test_evaluate_formula_errors_yield_zero(formula, params):
    assert evaluate_formula(formula, params) == 0


def test_evaluate_formula_logs_failures(caplog):
    with caplog.at_level(logging.ERROR, logger="labflow.utils.formulas"):
        assert evaluate_formula("1 / 0", {}) == 0
    assert "Error evaluating formula" in caplog.text


def test_compute_reports_missing_parameters():
    with pytest.raises(FormulaError, match="Missing numeric parameters: dose"):
        compute("${dose} * 2", {})


def test_compute_rejects_powers_beyond_float_range():
    with pytest.raises(FormulaError, match="Result too large"):
        compute("(9 ** 99) ** 99", {})
    with pytest.raises(FormulaError, match="Result too large"):
        compute("${base} ** -80", {"base": 0.00001})
    assert compute("(2 ** 10) ** 3", {}) == 2.0 ** 30
