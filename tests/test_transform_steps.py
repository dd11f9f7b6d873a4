import asyncio

import pytest

from fxns.config import EngineConfig
from fxns.observability.metrics import MetricsRegistry
from fxns.pipeline import StepExecutor
from fxns.pipeline.steps.transform import extract_domain
from fxns.tools.codec import steps_from_list

from support import RecordingTransport


def _transform(operation, source="value", options=None, context=None):
    config = {"operation": operation, "source": source}
    if options:
        config["options"] = options
    steps = steps_from_list([{"id": "out", "type": "transform", "config": config}])
    executor = StepExecutor(EngineConfig(), http_transport=RecordingTransport(), metrics=MetricsRegistry())
    return asyncio.run(executor.execute(steps, context or {}))


@pytest.mark.parametrize(
    "operation, value, expected",
    [
        ("uppercase", "hello", "HELLO"),
        ("lowercase", "HeLLo", "hello"),
        ("trim", "  padded  ", "padded"),
        ("capitalize", "ada lovelace", "Ada lovelace"),
        ("format_currency", 1234.5, "$1,234.50"),
        ("format_date", "2024-01-05", "January 5, 2024"),
        ("extract_domain", "https://www.example.com/path?q=1", "www.example.com"),
        ("extract_domain", "someone@Example.ORG", "example.org"),
    ],
)
def test_single_value_operations(operation, value, expected):
    result = _transform(operation, context={"value": value})
    assert result.succeeded, result.error
    assert result.context["out"] == expected


def test_round_uses_digits_option():
    result = _transform("round", options={"digits": 1}, context={"value": 2.25})
    assert result.context["out"] == 2.3


def test_format_currency_honours_currency_option():
    result = _transform("format_currency", options={"currency": "EUR"}, context={"value": 10})
    assert result.context["out"] == "€10.00"


def test_map_and_filter_bind_item_and_index():
    context = {"prices": [10, 25, 40], "rate": 2}
    mapped = _transform("map", source="prices", options={"formula": "item * rate + index"}, context=context)
    assert mapped.context["out"] == [20, 51, 82]
    filtered = _transform("filter", source="prices", options={"formula": "item > 20"}, context=context)
    assert filtered.context["out"] == [25, 40]


def test_transform_reads_nested_paths():
    result = _transform("uppercase", source="lookup.data.name", context={"lookup": {"data": {"name": "ada"}}})
    assert result.context["out"] == "ADA"


def test_bad_input_fails_the_step():
    result = _transform("format_date", context={"value": "not a date"})
    assert not result.succeeded
    assert "format_date failed" in result.error.message

    missing = _transform("trim", source="nothing")
    assert not missing.succeeded


def test_map_requires_a_list():
    result = _transform("map", options={"formula": "item"}, context={"value": "abc"})
    assert not result.succeeded


def test_extract_domain_rejects_plain_words():
    with pytest.raises(ValueError):
        extract_domain("nothing here")
