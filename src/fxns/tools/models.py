"""
Tool definition models: input form, logic steps and output view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..errors import DefinitionError

END_STEP_ID = "$end"

FIELD_TYPES = ("text", "textarea", "number", "boolean", "select", "email", "tel", "url", "date")
STEP_TYPES = ("calculation", "condition", "switch", "transform", "api_call", "ai_analysis")
OUTPUT_FORMATS = ("text", "json", "markdown", "table", "card")
DISPLAY_FORMATS = ("currency", "date", "percentage", "number", "boolean", "text")
TRANSFORM_OPERATIONS = (
    "uppercase",
    "lowercase",
    "trim",
    "capitalize",
    "round",
    "format_currency",
    "format_date",
    "extract_domain",
    "map",
    "filter",
)
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
AI_OUTPUT_FORMATS = ("text", "json", "markdown")
TOOL_STATUSES = ("draft", "testing", "published")


@dataclass
class FieldOption:
    label: str
    value: str


@dataclass
class FieldValidation:
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None


@dataclass
class FormField:
    id: str
    type: str
    label: str
    required: bool = False
    placeholder: Optional[str] = None
    default_value: Any = None
    options: Optional[List[FieldOption]] = None
    help_text: Optional[str] = None
    validation: Optional[FieldValidation] = None

    @property
    def option_values(self) -> List[str]:
        return [opt.value for opt in self.options or []]


@dataclass
class VariableBinding:
    """Binds a formula name to a form field or to an earlier step's output."""

    name: str
    field_id: Optional[str] = None
    step_id: Optional[str] = None

    @property
    def source(self) -> str:
        return self.field_id or self.step_id or self.name


@dataclass
class CalculationConfig:
    formula: str
    variables: List[VariableBinding] = field(default_factory=list)


@dataclass
class ConditionConfig:
    expression: str
    then_step_id: str
    else_step_id: Optional[str] = None


@dataclass
class SwitchCase:
    value: Any
    next_step_id: str


@dataclass
class SwitchConfig:
    expression: str
    cases: List[SwitchCase] = field(default_factory=list)
    default_step_id: Optional[str] = None


@dataclass
class TransformConfig:
    operation: str
    source: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ApiCallConfig:
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout_seconds: Optional[float] = None


@dataclass
class AiAnalysisConfig:
    prompt: str
    output_format: str = "text"
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout_seconds: Optional[float] = None


StepConfig = Union[
    CalculationConfig, ConditionConfig, SwitchConfig, TransformConfig, ApiCallConfig, AiAnalysisConfig
]

STEP_CONFIG_TYPES: Dict[str, type] = {
    "calculation": CalculationConfig,
    "condition": ConditionConfig,
    "switch": SwitchConfig,
    "transform": TransformConfig,
    "api_call": ApiCallConfig,
    "ai_analysis": AiAnalysisConfig,
}


@dataclass
class LogicStep:
    id: str
    type: str
    config: StepConfig
    title: Optional[str] = None
    next_step_id: Optional[str] = None
    continue_on_error: bool = False

    def __post_init__(self) -> None:
        expected = STEP_CONFIG_TYPES.get(self.type)
        if expected is None:
            raise DefinitionError(
                f"Step '{self.id}' has unknown type '{self.type}'.",
                issues=[f"Step '{self.id}': unknown type '{self.type}'."],
            )
        if not isinstance(self.config, expected):
            raise DefinitionError(
                f"Step '{self.id}' of type '{self.type}' needs a {expected.__name__}.",
                issues=[f"Step '{self.id}': config does not match type '{self.type}'."],
            )

    @property
    def label(self) -> str:
        return self.title or self.id


@dataclass
class FieldMapping:
    field_id: str
    label: str
    format: str = "text"


@dataclass
class OutputSection:
    title: str
    content: str = ""
    visible: bool = True
    id: Optional[str] = None


@dataclass
class OutputConfig:
    format: str = "text"
    field_mappings: List[FieldMapping] = field(default_factory=list)
    sections: List[OutputSection] = field(default_factory=list)
    source_step_id: Optional[str] = None


@dataclass
class ToolDraft:
    id: str
    name: str
    description: str = ""
    category: str = ""
    status: str = "draft"
    input_config: List[FormField] = field(default_factory=list)
    logic_config: List[LogicStep] = field(default_factory=list)
    output_config: OutputConfig = field(default_factory=OutputConfig)
    updated_at: Optional[str] = None


@dataclass
class PublishedTool:
    id: str
    draft_id: str
    name: str
    description: str = ""
    category: str = ""
    input_config: List[FormField] = field(default_factory=list)
    logic_config: List[LogicStep] = field(default_factory=list)
    output_config: OutputConfig = field(default_factory=OutputConfig)
    published_at: Optional[str] = None
