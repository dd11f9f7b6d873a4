"""
The whitelisted formula functions. Nothing outside this table is callable.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List

from ..errors import EvaluationError
from .values import normalize, to_number, to_text


def _arity(name: str, args: List[Any], low: int, high: int | None = None) -> None:
    high = low if high is None else high
    if low <= len(args) <= high:
        return
    if low == high:
        expected = f"{low} argument{'s' if low != 1 else ''}"
    else:
        expected = f"{low} to {high} arguments"
    raise EvaluationError(f"{name}() takes {expected} but got {len(args)}.")


def _numbers(name: str, args: List[Any]) -> List[int | float]:
    items = args
    if len(args) == 1 and isinstance(args[0], list):
        items = args[0]
    if not items:
        raise EvaluationError(f"{name}() needs at least one value.")
    return [to_number(item, what=f"{name}()") for item in items]


def fn_min(args: List[Any]) -> Any:
    return min(_numbers("min", args))


def fn_max(args: List[Any]) -> Any:
    return max(_numbers("max", args))


def fn_round(args: List[Any]) -> Any:
    _arity("round", args, 1, 2)
    value = to_number(args[0], what="round()")
    digits = 0
    if len(args) == 2:
        digits = normalize(to_number(args[1], what="round() digits"))
        if not isinstance(digits, int) or not -15 <= digits <= 15:
            raise EvaluationError("round() digits must be a whole number between -15 and 15.")
    try:
        quantum = Decimal(1).scaleb(-digits)
        rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise EvaluationError(f"round() could not round {value}.") from exc
    return normalize(float(rounded))


def fn_abs(args: List[Any]) -> Any:
    _arity("abs", args, 1)
    return abs(to_number(args[0], what="abs()"))


def fn_floor(args: List[Any]) -> Any:
    _arity("floor", args, 1)
    return math.floor(to_number(args[0], what="floor()"))


def fn_ceil(args: List[Any]) -> Any:
    _arity("ceil", args, 1)
    return math.ceil(to_number(args[0], what="ceil()"))


def fn_concat(args: List[Any]) -> Any:
    return "".join(to_text(arg) for arg in args)


def fn_len(args: List[Any]) -> Any:
    _arity("len", args, 1)
    value = args[0]
    if value is None:
        return 0
    if isinstance(value, (str, list, dict)):
        return len(value)
    raise EvaluationError("len() works on text and lists only.")


BUILTIN_FUNCTIONS: Dict[str, Callable[[List[Any]], Any]] = {
    "min": fn_min,
    "max": fn_max,
    "round": fn_round,
    "abs": fn_abs,
    "floor": fn_floor,
    "ceil": fn_ceil,
    "concat": fn_concat,
    "len": fn_len,
}
