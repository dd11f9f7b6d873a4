"""
Conversion between tool models and their camelCase wire/persisted form.

Serialization keeps every list in its original order, so
``draft_from_dict(draft_to_dict(d)) == d`` for any valid draft.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

from ..errors import DefinitionError
from .models import (
    AI_OUTPUT_FORMATS,
    DISPLAY_FORMATS,
    FIELD_TYPES,
    HTTP_METHODS,
    OUTPUT_FORMATS,
    TOOL_STATUSES,
    TRANSFORM_OPERATIONS,
    AiAnalysisConfig,
    ApiCallConfig,
    CalculationConfig,
    ConditionConfig,
    FieldMapping,
    FieldOption,
    FieldValidation,
    FormField,
    LogicStep,
    OutputConfig,
    OutputSection,
    PublishedTool,
    StepConfig,
    SwitchCase,
    SwitchConfig,
    ToolDraft,
    TransformConfig,
    VariableBinding,
)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _expect_dict(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DefinitionError(f"{where} must be an object.", issues=[f"{where} must be an object."])
    return value


def _expect_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DefinitionError(f"{where} must be a list.", issues=[f"{where} must be a list."])
    return value


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise DefinitionError(f"{where} is missing '{key}'.", issues=[f"{where}: '{key}' is required."])
    return value


def _choice(value: Any, allowed: tuple, where: str, key: str) -> str:
    if value not in allowed:
        message = f"{where}: '{key}' must be one of {', '.join(allowed)} (got {value!r})."
        raise DefinitionError(message, issues=[message])
    return value


def _optional_number(value: Any, where: str, key: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        message = f"{where}: '{key}' must be a number."
        raise DefinitionError(message, issues=[message])
    return value


# -- form fields -----------------------------------------------------------


def field_to_dict(item: FormField) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": item.id,
        "type": item.type,
        "label": item.label,
        "required": item.required,
        "placeholder": item.placeholder,
        "defaultValue": item.default_value,
        "helpText": item.help_text,
    }
    if item.options is not None:
        data["options"] = [{"label": opt.label, "value": opt.value} for opt in item.options]
    if item.validation is not None:
        v = item.validation
        data["validation"] = _compact(
            {"min": v.min, "max": v.max, "minLength": v.min_length, "maxLength": v.max_length, "pattern": v.pattern}
        )
    return _compact(data)


def field_from_dict(data: Any, index: int = 0) -> FormField:
    where = f"Field #{index + 1}"
    data = _expect_dict(data, where)
    field_id = str(_require(data, "id", where))
    where = f"Field '{field_id}'"
    options = None
    if data.get("options") is not None:
        options = []
        for raw in _expect_list(data.get("options"), f"{where} options"):
            if isinstance(raw, str):
                options.append(FieldOption(label=raw, value=raw))
                continue
            raw = _expect_dict(raw, f"{where} option")
            value = _require(raw, "value", f"{where} option")
            options.append(FieldOption(label=str(raw.get("label", value)), value=str(value)))
    validation = None
    if data.get("validation") is not None:
        raw = _expect_dict(data["validation"], f"{where} validation")
        validation = FieldValidation(
            min=_optional_number(raw.get("min"), where, "validation.min"),
            max=_optional_number(raw.get("max"), where, "validation.max"),
            min_length=_optional_number(raw.get("minLength"), where, "validation.minLength"),
            max_length=_optional_number(raw.get("maxLength"), where, "validation.maxLength"),
            pattern=raw.get("pattern"),
        )
    return FormField(
        id=field_id,
        type=_choice(data.get("type", "text"), FIELD_TYPES, where, "type"),
        label=str(data.get("label") or field_id),
        required=bool(data.get("required", False)),
        placeholder=data.get("placeholder"),
        default_value=data.get("defaultValue"),
        options=options,
        help_text=data.get("helpText"),
        validation=validation,
    )


# -- steps -----------------------------------------------------------------


def _calculation_to_dict(config: CalculationConfig) -> Dict[str, Any]:
    variables = []
    for var in config.variables:
        entry: Dict[str, Any] = {"name": var.name}
        if var.field_id is not None:
            entry["fieldId"] = var.field_id
        if var.step_id is not None:
            entry["stepId"] = var.step_id
        variables.append(entry)
    return {"formula": config.formula, "variables": variables}


def _calculation_from_dict(data: Dict[str, Any], where: str) -> CalculationConfig:
    variables = []
    for raw in _expect_list(data.get("variables"), f"{where} variables"):
        if isinstance(raw, str):
            variables.append(VariableBinding(name=raw, field_id=raw))
            continue
        raw = _expect_dict(raw, f"{where} variable")
        name = str(_require(raw, "name", f"{where} variable"))
        field_id = raw.get("fieldId")
        step_id = raw.get("stepId")
        if field_id is not None and step_id is not None:
            message = f"{where}: variable '{name}' must reference either fieldId or stepId, not both."
            raise DefinitionError(message, issues=[message])
        variables.append(VariableBinding(name=name, field_id=field_id, step_id=step_id))
    return CalculationConfig(formula=str(_require(data, "formula", where)), variables=variables)


def _condition_to_dict(config: ConditionConfig) -> Dict[str, Any]:
    return _compact(
        {"expression": config.expression, "thenStepId": config.then_step_id, "elseStepId": config.else_step_id}
    )


def _condition_from_dict(data: Dict[str, Any], where: str) -> ConditionConfig:
    return ConditionConfig(
        expression=str(_require(data, "expression", where)),
        then_step_id=str(_require(data, "thenStepId", where)),
        else_step_id=data.get("elseStepId"),
    )


def _switch_to_dict(config: SwitchConfig) -> Dict[str, Any]:
    return _compact(
        {
            "expression": config.expression,
            "cases": [{"value": case.value, "nextStepId": case.next_step_id} for case in config.cases],
            "defaultStepId": config.default_step_id,
        }
    )


def _switch_from_dict(data: Dict[str, Any], where: str) -> SwitchConfig:
    cases = []
    for raw in _expect_list(data.get("cases"), f"{where} cases"):
        raw = _expect_dict(raw, f"{where} case")
        if "value" not in raw:
            raise DefinitionError(f"{where} case is missing 'value'.", issues=[f"{where}: case 'value' is required."])
        cases.append(SwitchCase(value=raw["value"], next_step_id=str(_require(raw, "nextStepId", f"{where} case"))))
    return SwitchConfig(
        expression=str(_require(data, "expression", where)),
        cases=cases,
        default_step_id=data.get("defaultStepId"),
    )


def _transform_to_dict(config: TransformConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {"operation": config.operation, "source": config.source}
    if config.options:
        data["options"] = dict(config.options)
    return data


def _transform_from_dict(data: Dict[str, Any], where: str) -> TransformConfig:
    options = data.get("options") or {}
    return TransformConfig(
        operation=_choice(data.get("operation"), TRANSFORM_OPERATIONS, where, "operation"),
        source=str(_require(data, "source", where)),
        options=dict(_expect_dict(options, f"{where} options")),
    )


def _api_call_to_dict(config: ApiCallConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {"method": config.method, "url": config.url}
    if config.headers:
        data["headers"] = dict(config.headers)
    if config.body is not None:
        data["body"] = config.body
    if config.timeout_seconds is not None:
        data["timeoutSeconds"] = config.timeout_seconds
    return data


def _api_call_from_dict(data: Dict[str, Any], where: str) -> ApiCallConfig:
    headers = _expect_dict(data.get("headers") or {}, f"{where} headers")
    timeout = _optional_number(data.get("timeoutSeconds"), where, "timeoutSeconds")
    if timeout is not None and timeout <= 0:
        message = f"{where}: 'timeoutSeconds' must be greater than 0."
        raise DefinitionError(message, issues=[message])
    return ApiCallConfig(
        url=str(_require(data, "url", where)),
        method=_choice(str(data.get("method") or "GET").upper(), HTTP_METHODS, where, "method"),
        headers={str(k): str(v) for k, v in headers.items()},
        body=data.get("body"),
        timeout_seconds=timeout,
    )


def _ai_to_dict(config: AiAnalysisConfig) -> Dict[str, Any]:
    return _compact(
        {
            "prompt": config.prompt,
            "outputFormat": config.output_format,
            "model": config.model,
            "temperature": config.temperature,
            "maxTokens": config.max_tokens,
            "timeoutSeconds": config.timeout_seconds,
        }
    )


def _ai_from_dict(data: Dict[str, Any], where: str) -> AiAnalysisConfig:
    timeout = _optional_number(data.get("timeoutSeconds"), where, "timeoutSeconds")
    if timeout is not None and timeout <= 0:
        message = f"{where}: 'timeoutSeconds' must be greater than 0."
        raise DefinitionError(message, issues=[message])
    return AiAnalysisConfig(
        prompt=str(_require(data, "prompt", where)),
        output_format=_choice(data.get("outputFormat") or "text", AI_OUTPUT_FORMATS, where, "outputFormat"),
        model=data.get("model"),
        temperature=_optional_number(data.get("temperature"), where, "temperature"),
        max_tokens=_optional_number(data.get("maxTokens"), where, "maxTokens"),
        timeout_seconds=timeout,
    )


_CONFIG_CODECS: Dict[str, tuple[Callable[[Any], Dict[str, Any]], Callable[[Dict[str, Any], str], StepConfig]]] = {
    "calculation": (_calculation_to_dict, _calculation_from_dict),
    "condition": (_condition_to_dict, _condition_from_dict),
    "switch": (_switch_to_dict, _switch_from_dict),
    "transform": (_transform_to_dict, _transform_from_dict),
    "api_call": (_api_call_to_dict, _api_call_from_dict),
    "ai_analysis": (_ai_to_dict, _ai_from_dict),
}


def step_to_dict(step: LogicStep) -> Dict[str, Any]:
    to_dict, _ = _CONFIG_CODECS[step.type]
    data: Dict[str, Any] = {"id": step.id, "type": step.type}
    if step.title is not None:
        data["title"] = step.title
    data["config"] = to_dict(step.config)
    if step.next_step_id is not None:
        data["nextStepId"] = step.next_step_id
    data["continueOnError"] = step.continue_on_error
    return data


def step_from_dict(data: Any, index: int = 0) -> LogicStep:
    where = f"Step #{index + 1}"
    data = _expect_dict(data, where)
    step_id = str(_require(data, "id", where))
    where = f"Step '{step_id}'"
    step_type = _choice(data.get("type"), tuple(_CONFIG_CODECS), where, "type")
    _, from_dict = _CONFIG_CODECS[step_type]
    config = from_dict(_expect_dict(data.get("config") or {}, f"{where} config"), where)
    return LogicStep(
        id=step_id,
        type=step_type,
        config=config,
        title=data.get("title"),
        next_step_id=data.get("nextStepId"),
        continue_on_error=bool(data.get("continueOnError", False)),
    )


# -- output ----------------------------------------------------------------


def output_to_dict(config: OutputConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {"format": config.format}
    if config.field_mappings:
        data["fieldMappings"] = [
            {"fieldId": m.field_id, "label": m.label, "format": m.format} for m in config.field_mappings
        ]
    if config.sections:
        data["sections"] = [
            _compact({"id": s.id, "title": s.title, "content": s.content, "visible": s.visible})
            for s in config.sections
        ]
    if config.source_step_id is not None:
        data["sourceStepId"] = config.source_step_id
    return data


def output_from_dict(data: Any) -> OutputConfig:
    if data is None:
        return OutputConfig()
    data = _expect_dict(data, "Output config")
    where = "Output config"
    mappings = []
    for raw in _expect_list(data.get("fieldMappings"), f"{where} fieldMappings"):
        raw = _expect_dict(raw, f"{where} field mapping")
        field_id = str(_require(raw, "fieldId", f"{where} field mapping"))
        mappings.append(
            FieldMapping(
                field_id=field_id,
                label=str(raw.get("label") or field_id),
                format=_choice(raw.get("format") or "text", DISPLAY_FORMATS, f"{where} mapping '{field_id}'", "format"),
            )
        )
    sections = []
    for raw in _expect_list(data.get("sections"), f"{where} sections"):
        raw = _expect_dict(raw, f"{where} section")
        sections.append(
            OutputSection(
                title=str(raw.get("title") or ""),
                content=str(raw.get("content") or ""),
                visible=bool(raw.get("visible", True)),
                id=raw.get("id"),
            )
        )
    return OutputConfig(
        format=_choice(data.get("format") or "text", OUTPUT_FORMATS, where, "format"),
        field_mappings=mappings,
        sections=sections,
        source_step_id=data.get("sourceStepId"),
    )


# -- drafts and published tools --------------------------------------------


def fields_from_list(items: Any) -> List[FormField]:
    return [field_from_dict(item, idx) for idx, item in enumerate(_expect_list(items, "inputConfig"))]


def steps_from_list(items: Any) -> List[LogicStep]:
    return [step_from_dict(item, idx) for idx, item in enumerate(_expect_list(items, "logicConfig"))]


def draft_to_dict(draft: ToolDraft) -> Dict[str, Any]:
    return _compact(
        {
            "id": draft.id,
            "name": draft.name,
            "description": draft.description,
            "category": draft.category,
            "status": draft.status,
            "inputConfig": [field_to_dict(f) for f in draft.input_config],
            "logicConfig": [step_to_dict(s) for s in draft.logic_config],
            "outputConfig": output_to_dict(draft.output_config),
            "updatedAt": draft.updated_at,
        }
    )


def draft_from_dict(data: Any, *, draft_id: Optional[str] = None) -> ToolDraft:
    data = _expect_dict(data, "Tool draft")
    resolved_id = draft_id or data.get("id")
    if not resolved_id:
        raise DefinitionError("Tool draft is missing 'id'.", issues=["Tool draft: 'id' is required."])
    return ToolDraft(
        id=str(resolved_id),
        name=str(data.get("name") or "Untitled tool"),
        description=str(data.get("description") or ""),
        category=str(data.get("category") or ""),
        status=_choice(data.get("status") or "draft", TOOL_STATUSES, "Tool draft", "status"),
        input_config=fields_from_list(data.get("inputConfig")),
        logic_config=steps_from_list(data.get("logicConfig")),
        output_config=output_from_dict(data.get("outputConfig")),
        updated_at=data.get("updatedAt"),
    )


def published_to_dict(tool: PublishedTool) -> Dict[str, Any]:
    return _compact(
        {
            "id": tool.id,
            "draftId": tool.draft_id,
            "name": tool.name,
            "description": tool.description,
            "category": tool.category,
            "inputConfig": [field_to_dict(f) for f in tool.input_config],
            "logicConfig": [step_to_dict(s) for s in tool.logic_config],
            "outputConfig": output_to_dict(tool.output_config),
            "publishedAt": tool.published_at,
        }
    )


def published_from_dict(data: Any) -> PublishedTool:
    data = _expect_dict(data, "Published tool")
    return PublishedTool(
        id=str(_require(data, "id", "Published tool")),
        draft_id=str(_require(data, "draftId", "Published tool")),
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        category=str(data.get("category") or ""),
        input_config=fields_from_list(data.get("inputConfig")),
        logic_config=steps_from_list(data.get("logicConfig")),
        output_config=output_from_dict(data.get("outputConfig")),
        published_at=data.get("publishedAt"),
    )


def dumps_draft(draft: ToolDraft, *, indent: Optional[int] = 2) -> str:
    return json.dumps(draft_to_dict(draft), indent=indent)


def loads_draft(text: str) -> ToolDraft:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DefinitionError(f"Tool definition is not valid JSON: {exc}", issues=[str(exc)]) from exc
    return draft_from_dict(data)
