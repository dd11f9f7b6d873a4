"""
Tree-walking evaluator for parsed formulas.

Evaluation is a pure function of the AST and the bindings it is given: no
attribute access, no host builtins beyond the whitelist in ``builtins``.
"""

from __future__ import annotations

import difflib
import math
from typing import Any, Mapping

from ..config import DEFAULT_FORMULA_MAX_DEPTH, DEFAULT_FORMULA_MAX_LENGTH
from ..errors import DivisionByZeroError, EvaluationError, UnknownVariableError
from .ast_nodes import BinaryOp, Call, Literal, Node, UnaryOp, Variable
from .builtins import BUILTIN_FUNCTIONS
from .parser import parse_formula
from .values import describe, is_number, is_numeric, is_numeric_string, normalize, to_number, to_text, truthy

MAX_EXPONENT = 1024


class ExpressionEvaluator:
    """Evaluates a formula AST against a read-only mapping of bindings."""

    def __init__(self, bindings: Mapping[str, Any] | None = None) -> None:
        self.bindings: Mapping[str, Any] = bindings if bindings is not None else {}

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Variable):
            return self._resolve(node.name)
        if isinstance(node, UnaryOp):
            return self._unary(node)
        if isinstance(node, BinaryOp):
            return self._binary(node)
        if isinstance(node, Call):
            args = [self.evaluate(arg) for arg in node.args]
            return normalize(BUILTIN_FUNCTIONS[node.name](args))
        raise EvaluationError(f"Unsupported formula node {type(node).__name__}.")

    def _resolve(self, name: str) -> Any:
        if name in self.bindings:
            return self.bindings[name]
        message = f"Unknown variable '{name}'."
        matches = difflib.get_close_matches(name, [str(k) for k in self.bindings.keys()], n=1, cutoff=0.6)
        if matches:
            message += f" Did you mean {matches[0]}?"
        raise UnknownVariableError(message, name=name)

    def _unary(self, node: UnaryOp) -> Any:
        value = self.evaluate(node.operand)
        if node.op == "!":
            return not truthy(value)
        number = to_number(value, what=f"unary '{node.op}'")
        return -number if node.op == "-" else number

    def _binary(self, node: BinaryOp) -> Any:
        # Operator chains are left-deep; walk the spine instead of recursing per term.
        spine = []
        current: Node = node
        while isinstance(current, BinaryOp):
            spine.append(current)
            current = current.left
        value = self.evaluate(current)
        for item in reversed(spine):
            value = self._apply(item, value)
        return value

    def _apply(self, node: BinaryOp, left: Any) -> Any:
        op = node.op
        if op == "&&":
            return truthy(left) and truthy(self.evaluate(node.right))
        if op == "||":
            return truthy(left) or truthy(self.evaluate(node.right))
        right = self.evaluate(node.right)
        if op == "==":
            return _equals(left, right)
        if op == "!=":
            return not _equals(left, right)
        if op in {"<", "<=", ">", ">="}:
            return _compare(op, left, right)
        if op == "+":
            if is_numeric(left) and is_numeric(right):
                return normalize(to_number(left) + to_number(right))
            if isinstance(left, str) or isinstance(right, str):
                return to_text(left) + to_text(right)
            raise EvaluationError(f"Cannot add {describe(left)} and {describe(right)}.")
        a = to_number(left, what=f"'{op}'")
        b = to_number(right, what=f"'{op}'")
        if op == "-":
            return normalize(a - b)
        if op == "*":
            return normalize(a * b)
        if op == "/":
            if b == 0:
                raise DivisionByZeroError("Division by zero.")
            return normalize(a / b)
        if op == "%":
            if b == 0:
                raise DivisionByZeroError("Modulo by zero.")
            return normalize(math.fmod(a, b))
        if op == "^":
            return _power(a, b)
        raise EvaluationError(f"Unsupported operator '{op}'.")


def _equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if is_number(left) and is_numeric_string(right):
        return left == to_number(right)
    if is_numeric_string(left) and is_number(right):
        return to_number(left) == right
    return left == right


def _compare(op: str, left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str) and not (is_numeric_string(left) and is_numeric_string(right)):
        a, b = left, right
    else:
        a = to_number(left, what=f"'{op}'")
        b = to_number(right, what=f"'{op}'")
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    return a >= b


def _power(base: int | float, exponent: int | float) -> int | float:
    if abs(exponent) > MAX_EXPONENT:
        raise EvaluationError(f"Exponent {exponent} is out of range (limit {MAX_EXPONENT}).")
    if base == 0 and exponent < 0:
        raise DivisionByZeroError("Zero cannot be raised to a negative power.")
    try:
        return normalize(math.pow(base, exponent))
    except OverflowError as exc:
        raise EvaluationError("Result of '^' is too large.") from exc
    except ValueError as exc:
        raise EvaluationError(f"{base} ^ {exponent} is not a real number.") from exc


def evaluate(
    formula: str,
    bindings: Mapping[str, Any] | None = None,
    *,
    max_depth: int = DEFAULT_FORMULA_MAX_DEPTH,
    max_length: int = DEFAULT_FORMULA_MAX_LENGTH,
) -> Any:
    """Parse and evaluate ``formula`` in one go."""
    node = parse_formula(formula, max_depth=max_depth, max_length=max_length)
    return ExpressionEvaluator(bindings).evaluate(node)


def validate_formula(
    formula: str,
    *,
    max_depth: int = DEFAULT_FORMULA_MAX_DEPTH,
    max_length: int = DEFAULT_FORMULA_MAX_LENGTH,
) -> Node:
    """Parse without evaluating; raises the same errors ``evaluate`` would at parse time."""
    return parse_formula(formula, max_depth=max_depth, max_length=max_length)
