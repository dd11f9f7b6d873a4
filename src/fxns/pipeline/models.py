"""
Pipeline runtime models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import FxnsError
from .context import ExecutionContext


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    step_id: str
    step_type: str
    status: StepStatus = StepStatus.PENDING
    output: Any = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "stepId": self.step_id,
            "type": self.step_type,
            "status": self.status.value,
            "durationMs": round(self.duration_seconds * 1000, 2),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class StepOutcome:
    """What a step handler hands back to the executor."""

    value: Any = None
    next_step_id: Optional[str] = None
    routed: bool = False
    skipped: bool = False


@dataclass
class PipelineResult:
    context: ExecutionContext
    status: str = "completed"
    steps: List[StepResult] = field(default_factory=list)
    failed_step_id: Optional[str] = None
    error: Optional[FxnsError] = None
    last_completed_step_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    def step(self, step_id: str) -> Optional[StepResult]:
        for item in self.steps:
            if item.step_id == step_id:
                return item
        return None

    def statuses(self) -> Dict[str, str]:
        return {item.step_id: item.status.value for item in self.steps}
