"""
Placeholder substitution for api_call requests, AI prompts and output sections.

Recognised forms are ``{{path}}``, ``${path}`` and ``{path}`` where ``path`` is a
context key optionally followed by dotted segments (``lookup.data.0.name``).
Unresolved placeholders are left untouched.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Mapping, Optional
from urllib.parse import quote

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}|\$\{([A-Za-z_][\w.]*)\}|\{([A-Za-z_][\w.]*)\}")
MISSING = object()


def lookup_path(context: Mapping[str, Any], path: str) -> Any:
    """Resolve ``a.b.0`` against nested dicts/lists; returns a sentinel when absent."""
    head, *rest = path.split(".")
    if head not in context:
        return MISSING
    current = context[head]
    for segment in rest:
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return MISSING
    return current


def format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def render_template(
    template: str,
    context: Mapping[str, Any],
    *,
    encode: Optional[Callable[[str], str]] = None,
) -> str:
    if not isinstance(template, str) or "{" not in template:
        return template

    def _sub(match: re.Match) -> str:
        path = match.group(1) or match.group(2) or match.group(3)
        value = lookup_path(context, path)
        if value is MISSING:
            return match.group(0)
        text = format_value(value)
        return encode(text) if encode else text

    return _PLACEHOLDER.sub(_sub, template)


def render_url(template: str, context: Mapping[str, Any]) -> str:
    return render_template(template, context, encode=lambda text: quote(text, safe=""))


def render_structure(value: Any, context: Mapping[str, Any]) -> Any:
    """Template every string inside a JSON-like structure.

    A string that is exactly one placeholder is replaced by the raw value so
    numbers and objects keep their type in request bodies.
    """
    if isinstance(value, str):
        match = _PLACEHOLDER.fullmatch(value.strip())
        if match:
            resolved = lookup_path(context, match.group(1) or match.group(2) or match.group(3))
            if resolved is not MISSING:
                return resolved
        return render_template(value, context)
    if isinstance(value, dict):
        return {key: render_structure(item, context) for key, item in value.items()}
    if isinstance(value, list):
        return [render_structure(item, context) for item in value]
    return value
