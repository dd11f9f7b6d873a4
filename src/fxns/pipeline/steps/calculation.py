from __future__ import annotations

from collections import ChainMap
from typing import Any, Dict

from ...errors import UnknownVariableError
from ...tools.models import CalculationConfig, LogicStep
from ..models import StepOutcome
from ..runtime import StepRuntime


async def run_calculation(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: CalculationConfig = step.config
    local: Dict[str, Any] = {}
    for var in config.variables:
        source = var.source
        if source not in runtime.context:
            raise UnknownVariableError(
                f"Variable '{var.name}' is bound to '{source}', which has no value at this point.",
                name=var.name,
            )
        local[var.name] = runtime.context[source]
    # declared names shadow context entries of the same name
    bindings = ChainMap(local, runtime.context)
    return StepOutcome(value=runtime.evaluate(step, config.formula, bindings))
