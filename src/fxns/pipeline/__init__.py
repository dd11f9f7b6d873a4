"""
Step execution pipeline.
"""

from .context import ExecutionContext
from .executor import StepExecutor
from .models import PipelineResult, StepOutcome, StepResult, StepStatus

__all__ = ["ExecutionContext", "PipelineResult", "StepExecutor", "StepOutcome", "StepResult", "StepStatus"]
