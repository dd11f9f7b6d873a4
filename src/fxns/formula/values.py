"""
Value coercion shared by the evaluator and the builtin functions.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from ..errors import EvaluationError

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_MAX_EXACT_INT = 2**53


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_numeric_string(value: Any) -> bool:
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value))


def is_numeric(value: Any) -> bool:
    return is_number(value) or is_numeric_string(value)


def to_number(value: Any, *, what: str = "value") -> int | float:
    if is_number(value):
        return value
    if is_numeric_string(value):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return normalize(float(text))
    raise EvaluationError(f"Expected a number for {what} but got {describe(value)}.")


def normalize(value: Any) -> Any:
    """Integral floats become ints; NaN and infinities are rejected."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EvaluationError("Formula produced a number that is not finite.")
        if value.is_integer() and abs(value) < _MAX_EXACT_INT:
            return int(value)
    return value


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(normalize(value))
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) > 0
    return True


def describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "a boolean"
    if isinstance(value, str):
        return f"text '{value}'" if len(value) <= 40 else "text"
    if isinstance(value, (list, tuple)):
        return "a list"
    if isinstance(value, dict):
        return "an object"
    return type(value).__name__
