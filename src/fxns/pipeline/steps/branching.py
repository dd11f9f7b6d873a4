"""
condition and switch steps: the only steps that choose where control goes.
"""

from __future__ import annotations

from ...errors import EvaluationError
from ...formula.values import to_text
from ...tools.models import ConditionConfig, LogicStep, SwitchConfig
from ..models import StepOutcome
from ..runtime import StepRuntime


async def run_condition(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: ConditionConfig = step.config
    result = runtime.evaluate(step, config.expression)
    if not isinstance(result, bool):
        raise EvaluationError(
            f"Condition '{config.expression}' must evaluate to true or false, got {to_text(result)!r}."
        )
    if result:
        target = config.then_step_id
    else:
        target = config.else_step_id or runtime.graph.fallthrough(step)
    return StepOutcome(
        value={"branch": "then" if result else "else", "result": result},
        next_step_id=target,
        routed=True,
    )


async def run_switch(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: SwitchConfig = step.config
    selector = runtime.evaluate(step, config.expression)
    key = to_text(selector)
    for index, case in enumerate(config.cases):
        if to_text(case.value) == key:
            return StepOutcome(
                value={"matched": True, "value": selector, "case": index},
                next_step_id=case.next_step_id,
                routed=True,
            )
    if config.default_step_id:
        return StepOutcome(
            value={"matched": False, "value": selector, "case": None},
            next_step_id=config.default_step_id,
            routed=True,
        )
    return StepOutcome(skipped=True)
