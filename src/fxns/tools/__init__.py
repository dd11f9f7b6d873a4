"""
Tool definitions: models, wire codec and graph checks.
"""

from .codec import draft_from_dict, draft_to_dict, dumps_draft, loads_draft, published_from_dict, published_to_dict
from .graph import StepGraph, publish_issues, structural_issues, validate_draft
from .models import (
    END_STEP_ID,
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
    SwitchCase,
    SwitchConfig,
    ToolDraft,
    TransformConfig,
    VariableBinding,
)

__all__ = [
    "END_STEP_ID",
    "AiAnalysisConfig",
    "ApiCallConfig",
    "CalculationConfig",
    "ConditionConfig",
    "FieldMapping",
    "FieldOption",
    "FieldValidation",
    "FormField",
    "LogicStep",
    "OutputConfig",
    "OutputSection",
    "PublishedTool",
    "StepGraph",
    "SwitchCase",
    "SwitchConfig",
    "ToolDraft",
    "TransformConfig",
    "VariableBinding",
    "draft_from_dict",
    "draft_to_dict",
    "dumps_draft",
    "loads_draft",
    "publish_issues",
    "published_from_dict",
    "published_to_dict",
    "structural_issues",
    "validate_draft",
]
