"""
Output rendering: text, json, markdown, table and card views.
"""

from .formatting import PLACEHOLDER, format_display
from .markdown import render_markdown
from .renderer import OutputRenderer, RenderedOutput, render

__all__ = ["PLACEHOLDER", "OutputRenderer", "RenderedOutput", "format_display", "render", "render_markdown"]
