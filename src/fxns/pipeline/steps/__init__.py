"""
Step handlers keyed by step type.
"""

from typing import Awaitable, Callable, Dict

from ...tools.models import LogicStep
from ..models import StepOutcome
from ..runtime import StepRuntime
from .ai_analysis import run_ai_analysis
from .api_call import run_api_call
from .branching import run_condition, run_switch
from .calculation import run_calculation
from .transform import run_transform

StepHandler = Callable[[LogicStep, StepRuntime], Awaitable[StepOutcome]]

STEP_HANDLERS: Dict[str, StepHandler] = {
    "calculation": run_calculation,
    "condition": run_condition,
    "switch": run_switch,
    "transform": run_transform,
    "api_call": run_api_call,
    "ai_analysis": run_ai_analysis,
}

__all__ = ["STEP_HANDLERS", "StepHandler"]
