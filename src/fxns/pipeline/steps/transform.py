from __future__ import annotations

from collections import ChainMap
from typing import Any, Callable, Dict
from urllib.parse import urlsplit

from ...errors import EvaluationError, UnknownVariableError
from ...formula.builtins import fn_round
from ...formula.values import to_text, truthy
from ...output.formatting import format_currency, format_date
from ...templating import MISSING, lookup_path
from ...tools.models import LogicStep, TransformConfig
from ..models import StepOutcome
from ..runtime import StepRuntime


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def extract_domain(value: Any) -> str:
    text = to_text(value).strip()
    if "://" in text:
        host = urlsplit(text).hostname
        if host:
            return host
    elif "@" in text:
        domain = text.rsplit("@", 1)[1]
        if domain:
            return domain.lower()
    elif text:
        host = urlsplit(f"//{text}").hostname
        if host and "." in host:
            return host
    raise ValueError(f"Could not find a domain in {text!r}.")


_TEXT_OPERATIONS: Dict[str, Callable[[str], str]] = {
    "uppercase": str.upper,
    "lowercase": str.lower,
    "trim": str.strip,
    "capitalize": _capitalize,
}


async def run_transform(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: TransformConfig = step.config
    value = lookup_path(runtime.context, config.source)
    if value is MISSING:
        raise UnknownVariableError(f"Transform source '{config.source}' has no value.", name=config.source)
    op = config.operation
    options = config.options
    if op in _TEXT_OPERATIONS:
        return StepOutcome(value=_TEXT_OPERATIONS[op](to_text(value)))
    if op == "round":
        return StepOutcome(value=fn_round([value, options.get("digits", 0)]))
    if op in {"format_currency", "format_date", "extract_domain"}:
        try:
            if op == "format_currency":
                result = format_currency(value, options.get("currency", "USD"))
            elif op == "format_date":
                result = format_date(value)
            else:
                result = extract_domain(value)
        except ValueError as exc:
            raise EvaluationError(f"{op} failed: {exc}") from exc
        return StepOutcome(value=result)
    if op in {"map", "filter"}:
        return StepOutcome(value=_map_or_filter(step, runtime, value))
    raise EvaluationError(f"Unknown transform operation '{op}'.")


def _map_or_filter(step: LogicStep, runtime: StepRuntime, value: Any) -> list:
    config: TransformConfig = step.config
    if value is None:
        return []
    if not isinstance(value, list):
        raise EvaluationError(f"{config.operation} needs a list but '{config.source}' is {type(value).__name__}.")
    formula = config.options.get("formula")
    if not isinstance(formula, str):
        raise EvaluationError(f"{config.operation} needs an options.formula.")
    results = []
    for index, item in enumerate(value):
        bindings = ChainMap({"item": item, "index": index}, runtime.context)
        outcome = runtime.evaluate(step, formula, bindings)
        if config.operation == "map":
            results.append(outcome)
        elif truthy(outcome):
            results.append(item)
    return results
