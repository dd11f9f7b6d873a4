import json

import pytest

from fxns.errors import ConfigurationError
from fxns.output import OutputRenderer, render_markdown
from fxns.output.formatting import (
    format_boolean,
    format_currency,
    format_date,
    format_display,
    format_number,
    format_percentage,
)
from fxns.tools.codec import output_from_dict


def _render(result, output, context=None):
    return OutputRenderer().render(result, output_from_dict(output), context or {})


def test_display_formats():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-3) == "-$3.00"
    assert format_currency(1500, "JPY") == "¥1,500"
    assert format_percentage(12.5) == "12.5%"
    assert format_number(1234567.891) == "1,234,567.89"
    assert format_boolean("yes") == "Yes"
    assert format_boolean(0) == "No"
    assert format_date(1704412800000) == "January 5, 2024"
    assert format_date("01/05/2024") == "January 5, 2024"


def test_format_display_is_lenient():
    assert format_display(None, "currency") == "N/A"
    assert format_display("abc", "currency") == "abc"
    assert format_display(True, "text") == "true"


def test_text_output_for_plain_values():
    assert _render(0.3, {"format": "text"}).content == "0.3"
    assert _render({"a": 1}, {"format": "text"}).content == json.dumps({"a": 1}, indent=2)


def test_text_sections_are_templated_and_hidden_ones_dropped():
    output = {
        "format": "text",
        "sections": [
            {"title": "Tip", "content": "Leave {{tip}} for {name}"},
            {"title": "Hidden", "content": "nope", "visible": False},
        ],
    }
    rendered = _render(None, output, {"tip": 0.3, "name": "Sam"})
    assert rendered.content == "Tip\nLeave 0.3 for Sam"
    assert len(rendered.data["sections"]) == 1


def test_json_output_is_indented():
    rendered = _render({"total": 5}, {"format": "json"})
    assert rendered.content == '{\n  "total": 5\n}'
    assert rendered.data == {"total": 5}


def test_markdown_output_escapes_html():
    rendered = _render({"markdown": "# Report\n**bold** <script>alert(1)</script>"}, {"format": "markdown"})
    assert "<h1>Report</h1>" in rendered.content
    assert "<strong>bold</strong>" in rendered.content
    assert "<script>" not in rendered.content
    assert "&lt;script&gt;" in rendered.content


def test_render_markdown_line_breaks_and_italics():
    assert render_markdown("one *two*\nthree") == "one <em>two</em><br>\nthree"


def test_table_uses_mappings_and_placeholder():
    output = {
        "format": "table",
        "fieldMappings": [
            {"fieldId": "name", "label": "Name"},
            {"fieldId": "price", "label": "Price", "format": "currency"},
            {"fieldId": "missing", "label": "Notes"},
        ],
    }
    rendered = _render([{"name": "Widget", "price": 9.5}, {"name": "Gadget", "price": 12}], output)
    assert rendered.data["columns"] == ["Name", "Price", "Notes"]
    assert rendered.data["rows"] == [["Widget", "$9.50", "N/A"], ["Gadget", "$12.00", "N/A"]]
    assert rendered.content.splitlines()[0] == "Name | Price | Notes"


def test_card_falls_back_to_context_values():
    output = {
        "format": "card",
        "fieldMappings": [
            {"fieldId": "tip", "label": "Tip", "format": "currency"},
            {"fieldId": "rate", "label": "Rate", "format": "percentage"},
        ],
    }
    rendered = _render(0.3, output, {"tip": 0.3, "rate": 15})
    assert rendered.data["items"] == [{"label": "Tip", "value": "$0.30"}, {"label": "Rate", "value": "15%"}]


@pytest.mark.parametrize("fmt", ["table", "card"])
def test_table_and_card_need_mappings(fmt):
    with pytest.raises(ConfigurationError):
        _render({"a": 1}, {"format": fmt})
