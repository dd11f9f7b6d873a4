"""
Custom error types for the fxns tool engine.

Every error that can reach a caller derives from ``FxnsError`` and knows how to
render itself as a structured ``{success: false, error}`` payload.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(eq=False)
class FxnsError(Exception):
    """Base error with a stable error code."""

    message: str
    code: str = "FX-1000"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "errorType": type(self).__name__}


@dataclass(eq=False)
class ValidationError(FxnsError):
    """Raised when submitted input does not satisfy the tool's form fields."""

    code: str = "FX-1100"
    fields: list[dict[str, str]] = field(default_factory=list)

    @property
    def field_ids(self) -> list[str]:
        return [entry["fieldId"] for entry in self.fields]

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["fields"] = [dict(entry) for entry in self.fields]
        return payload


@dataclass(eq=False)
class EvaluationError(FxnsError):
    """Raised when a formula cannot be parsed or evaluated."""

    code: str = "FX-1200"
    step_id: Optional[str] = None
    position: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.step_id:
            payload["failedStepId"] = self.step_id
        return payload


@dataclass(eq=False)
class FormulaSyntaxError(EvaluationError):
    """Malformed formula (unbalanced parentheses, dangling operators, too deep)."""

    code: str = "FX-1201"


@dataclass(eq=False)
class UnknownVariableError(EvaluationError):
    """A formula referenced a name that is not bound."""

    code: str = "FX-1202"
    name: Optional[str] = None


@dataclass(eq=False)
class DivisionByZeroError(EvaluationError):
    code: str = "FX-1203"


@dataclass(eq=False)
class DisallowedTokenError(EvaluationError):
    """A formula used a character, keyword or function outside the whitelist."""

    code: str = "FX-1204"


@dataclass(eq=False)
class StepExecutionError(FxnsError):
    """Raised when a step's external call (HTTP or AI) fails."""

    code: str = "FX-1300"
    step_id: Optional[str] = None
    status: Optional[int] = None
    cause: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.step_id:
            payload["failedStepId"] = self.step_id
        if self.status is not None:
            payload["status"] = self.status
        return payload


@dataclass(eq=False)
class ProviderError(FxnsError):
    """Raised by AI providers; wrapped into StepExecutionError by the pipeline."""

    code: str = "FX-1310"
    status: Optional[int] = None


@dataclass(eq=False)
class ConfigurationError(FxnsError):
    """Output configuration problem. Shown to tool authors, never to end users."""

    code: str = "FX-1400"


@dataclass(eq=False)
class DefinitionError(FxnsError):
    """Raised when a tool definition is structurally invalid (bad ids, cycles, shapes)."""

    code: str = "FX-1500"
    issues: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["issues"] = list(self.issues)
        return payload


@dataclass(eq=False)
class ContextWriteError(FxnsError):
    """Raised when a step tries to overwrite an existing execution context entry."""

    code: str = "FX-1600"


@dataclass(eq=False)
class ToolNotFoundError(FxnsError):
    code: str = "FX-1700"


@dataclass(eq=False)
class InvalidStatusTransition(FxnsError):
    code: str = "FX-1701"
