"""
Arithmetic formula evaluation for step quantities.

Formulas reference user parameters with ``${name}`` placeholders, e.g.
``${sample_count} * 1.5 + 2``. Numeric parameters are substituted and the
result is evaluated by walking the parsed expression tree; only arithmetic
operators, numeric literals and a handful of pure functions are accepted.
"""
from __future__ import annotations

import ast
import logging
import math
import operator
import re
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
}

# Keeps ``10 ** 10 ** 10`` style input from stalling a request
_MAX_EXPONENT = 100
# Decimal digits of the largest finite float
_MAX_MAGNITUDE = 308


class FormulaError(ValueError):
    """Raised when a formula cannot be evaluated."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def formula_placeholders(formula: str) -> List[str]:
    """Return placeholder names in order of first appearance."""
    seen: List[str] = []
    for name in _PLACEHOLDER.findall(formula or ""):
        if name not in seen:
            seen.append(name)
    return seen


def substitute_parameters(formula: str, parameters: Mapping[str, Any]) -> str:
    """Replace ``${name}`` with numeric parameter values; others are left in place."""
    def _replace(match: re.Match) -> str:
        value = parameters.get(match.group(1))
        if _is_number(value):
            return f"({value!r})"
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, formula)


def _check_power(base, exponent):
    if abs(exponent) > _MAX_EXPONENT:
        raise FormulaError("Exponent too large")
    if base != 0 and exponent * math.log10(abs(base)) > _MAX_MAGNITUDE:
        raise FormulaError("Result too large")


def _eval_node(node: ast.AST):
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant):
        if _is_number(node.value):
            return node.value
        raise FormulaError(f"Unsupported literal: {node.value!r}")
    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise FormulaError(f"Unsupported operator: {type(node.op).__name__}")
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        return op(left, right)
    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise FormulaError(f"Unsupported operator: {type(node.op).__name__}")
        return op(_eval_node(node.operand))
    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS or node.keywords:
            raise FormulaError("Unsupported function call")
        return _FUNCTIONS[node.func.id](*[_eval_node(arg) for arg in node.args])
    raise FormulaError(f"Unsupported expression: {type(node).__name__}")


def compute(formula: str, parameters: Mapping[str, Any]) -> float:
    """Evaluate ``formula`` strictly; raises FormulaError on any problem."""
    if not formula or not formula.strip():
        raise FormulaError("Empty formula")
    expression = substitute_parameters(formula, parameters)
    leftover = formula_placeholders(expression)
    if leftover:
        raise FormulaError(f"Missing numeric parameters: {', '.join(leftover)}")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
        return float(_eval_node(tree))
    except FormulaError:
        raise
    except (SyntaxError, ArithmeticError, TypeError, ValueError, RecursionError) as exc:
        raise FormulaError(str(exc)) from exc


def evaluate_formula(formula: str, parameters: Dict[str, Any]) -> float:
    """Evaluate a step formula, returning 0 when it cannot be computed."""
    try:
        return compute(formula, parameters)
    except FormulaError as exc:
        logger.error("Error evaluating formula %r: %s", formula, exc)
        return 0.0
