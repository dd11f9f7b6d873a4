"""
Renders a pipeline result into one of the tool output formats.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ConfigurationError
from ..templating import MISSING, format_value, lookup_path, render_template
from ..tools.models import FieldMapping, OutputConfig
from .formatting import PLACEHOLDER, format_display
from .markdown import render_markdown


@dataclass
class RenderedOutput:
    format: str
    content: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "content": self.content, "data": self.data}


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return _to_json(value)
    if value is None:
        return ""
    return format_value(value)


class OutputRenderer:
    def __init__(self, placeholder: str = PLACEHOLDER) -> None:
        self.placeholder = placeholder

    def render(
        self,
        result: Any,
        config: Optional[OutputConfig] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> RenderedOutput:
        config = config or OutputConfig()
        context = context or {}
        fmt = config.format
        if fmt == "text":
            return self._render_text(result, config, context)
        if fmt == "json":
            return RenderedOutput("json", _to_json(result), result)
        if fmt == "markdown":
            return self._render_markdown(result, config, context)
        if fmt in {"table", "card"}:
            if not config.field_mappings:
                raise ConfigurationError(f"Output format '{fmt}' needs at least one field mapping.")
            if fmt == "table":
                return self._render_table(result, config.field_mappings, context)
            return self._render_card(result, config.field_mappings, context)
        raise ConfigurationError(f"Unknown output format '{fmt}'.")

    def _visible_sections(self, config: OutputConfig, context: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return [
            {"id": section.id, "title": section.title, "content": render_template(section.content, context)}
            for section in config.sections
            if section.visible
        ]

    def _render_text(self, result: Any, config: OutputConfig, context: Mapping[str, Any]) -> RenderedOutput:
        if config.sections:
            sections = self._visible_sections(config, context)
            blocks = [f"{s['title']}\n{s['content']}" if s["title"] else s["content"] for s in sections]
            return RenderedOutput("text", "\n\n".join(blocks), {"sections": sections})
        return RenderedOutput("text", _as_text(result), result)

    def _render_markdown(self, result: Any, config: OutputConfig, context: Mapping[str, Any]) -> RenderedOutput:
        if config.sections:
            sections = self._visible_sections(config, context)
            source = "\n".join(
                f"## {s['title']}\n{s['content']}" if s["title"] else s["content"] for s in sections
            )
        elif isinstance(result, dict) and isinstance(result.get("markdown"), str):
            source = result["markdown"]
        elif isinstance(result, dict) and isinstance(result.get("text"), str):
            source = result["text"]
        else:
            source = _as_text(result)
        return RenderedOutput("markdown", render_markdown(source), {"markdown": source})

    def _cell(self, item: Any, mapping: FieldMapping, context: Mapping[str, Any]) -> str:
        value = MISSING
        if isinstance(item, Mapping):
            value = lookup_path(item, mapping.field_id)
        if value is MISSING:
            value = lookup_path(context, mapping.field_id)
        if value is MISSING:
            return self.placeholder
        return format_display(value, mapping.format, placeholder=self.placeholder)

    def _render_table(
        self, result: Any, mappings: List[FieldMapping], context: Mapping[str, Any]
    ) -> RenderedOutput:
        items = result if isinstance(result, list) else [result]
        columns = [m.label for m in mappings]
        rows = [[self._cell(item, m, context) for m in mappings] for item in items]
        lines = [" | ".join(columns)]
        lines.append(" | ".join("---" for _ in columns))
        lines.extend(" | ".join(row) for row in rows)
        return RenderedOutput("table", "\n".join(lines), {"columns": columns, "rows": rows})

    def _render_card(self, result: Any, mappings: List[FieldMapping], context: Mapping[str, Any]) -> RenderedOutput:
        item = result[0] if isinstance(result, list) and result else result
        items = [{"label": m.label, "value": self._cell(item, m, context)} for m in mappings]
        content = "\n".join(f"{entry['label']}: {entry['value']}" for entry in items)
        return RenderedOutput("card", content, {"items": items})


def render(
    result: Any, config: Optional[OutputConfig] = None, context: Optional[Mapping[str, Any]] = None
) -> RenderedOutput:
    return OutputRenderer().render(result, config, context)
