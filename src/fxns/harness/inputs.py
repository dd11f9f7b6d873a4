"""
Form input validation and coercion.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from ..errors import ValidationError
from ..formula.values import is_numeric_string, to_number
from ..output.formatting import parse_date
from ..tools.models import FormField

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TEL_RE = re.compile(r"^\+?[0-9()\-.\s]{7,20}$")

_TRUE = {"true", "1", "on", "yes"}
_FALSE = {"false", "0", "off", "no"}
_TEXT_TYPES = {"text", "textarea", "email", "tel", "url"}


class _FieldProblem(Exception):
    pass


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_number(item: FormField, raw: Any) -> int | float:
    if isinstance(raw, bool) or not (isinstance(raw, (int, float)) or is_numeric_string(raw)):
        raise _FieldProblem(f"{item.label} must be a number.")
    value = to_number(raw)
    rules = item.validation
    if rules is not None:
        if rules.min is not None and value < rules.min:
            raise _FieldProblem(f"{item.label} must be at least {rules.min:g}.")
        if rules.max is not None and value > rules.max:
            raise _FieldProblem(f"{item.label} must be at most {rules.max:g}.")
    return value


def _coerce_boolean(item: FormField, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE:
            return True
        if word in _FALSE:
            return False
    raise _FieldProblem(f"{item.label} must be true or false.")


def _coerce_text(item: FormField, raw: Any) -> str:
    if isinstance(raw, (dict, list)):
        raise _FieldProblem(f"{item.label} must be text.")
    text = str(raw).strip() if item.type != "textarea" else str(raw)
    if item.type == "email" and not EMAIL_RE.match(text):
        raise _FieldProblem(f"{item.label} must be a valid email address.")
    if item.type == "url":
        parts = urlsplit(text)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise _FieldProblem(f"{item.label} must be a valid http(s) URL.")
    if item.type == "tel" and not TEL_RE.match(text):
        raise _FieldProblem(f"{item.label} must be a valid phone number.")
    rules = item.validation
    if rules is not None:
        if rules.min_length is not None and len(text) < rules.min_length:
            raise _FieldProblem(f"{item.label} must be at least {int(rules.min_length)} characters.")
        if rules.max_length is not None and len(text) > rules.max_length:
            raise _FieldProblem(f"{item.label} must be at most {int(rules.max_length)} characters.")
        if rules.pattern:
            try:
                matched = re.fullmatch(rules.pattern, text)
            except re.error:
                matched = None
            if matched is None:
                raise _FieldProblem(f"{item.label} is not in the expected format.")
    return text


def coerce_field(item: FormField, raw: Any) -> Any:
    if item.type == "number":
        return _coerce_number(item, raw)
    if item.type == "boolean":
        return _coerce_boolean(item, raw)
    if item.type == "select":
        value = str(raw)
        if value not in item.option_values:
            raise _FieldProblem(f"{item.label} must be one of: {', '.join(item.option_values)}.")
        return value
    if item.type == "date":
        try:
            return parse_date(raw).isoformat()
        except ValueError:
            raise _FieldProblem(f"{item.label} must be a valid date.") from None
    if item.type in _TEXT_TYPES:
        return _coerce_text(item, raw)
    return raw


def validate_input(fields: Sequence[FormField], data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Check and coerce submitted values against the tool's form fields.

    Returns a dict with one entry per field (absent optional fields hold their
    default or ``None``); keys that match no field are dropped. Every problem
    is collected before raising a single ``ValidationError``.
    """
    data = data or {}
    values: Dict[str, Any] = {}
    problems: List[Dict[str, str]] = []
    for item in fields:
        raw = data.get(item.id)
        if _is_empty(raw):
            if item.required:
                problems.append({"fieldId": item.id, "label": item.label, "message": f"{item.label} is required."})
                continue
            raw = item.default_value
            if _is_empty(raw):
                values[item.id] = None
                continue
        try:
            values[item.id] = coerce_field(item, raw)
        except _FieldProblem as exc:
            problems.append({"fieldId": item.id, "label": item.label, "message": str(exc)})
    if problems:
        if len(problems) == 1:
            message = problems[0]["message"]
        else:
            message = f"{len(problems)} fields need attention: {', '.join(p['label'] for p in problems)}."
        raise ValidationError(message, fields=problems)
    return values
