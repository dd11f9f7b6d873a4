"""
Constrained markdown: headers, bold, italic and line breaks over escaped text.

The input is HTML-escaped before any substitution, so the only tags that can
appear in the output are the ones produced here.
"""

from __future__ import annotations

import html
import re
from typing import List

_HEADER = re.compile(r"^(#{1,3})\s+(.*)$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")


def _inline(text: str) -> str:
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    return _ITALIC.sub(r"<em>\1</em>", text)


def render_markdown(text: str) -> str:
    escaped = html.escape(text or "", quote=True)
    lines = escaped.replace("\r\n", "\n").split("\n")
    out: List[str] = []
    for idx, line in enumerate(lines):
        header = _HEADER.match(line)
        if header:
            level = len(header.group(1))
            out.append(f"<h{level}>{_inline(header.group(2).strip())}</h{level}>")
            continue
        rendered = _inline(line)
        nxt = lines[idx + 1] if idx + 1 < len(lines) else None
        if nxt is not None and not _HEADER.match(nxt):
            rendered += "<br>"
        out.append(rendered)
    return "\n".join(out)
