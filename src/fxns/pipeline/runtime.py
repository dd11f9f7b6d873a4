from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..ai.providers import ModelProvider
from ..adapters.http import HostResolver, TransportLike
from ..config import EngineConfig
from ..formula import ExpressionEvaluator, FormulaCache
from ..observability.metrics import MetricsRegistry
from ..tools.graph import StepGraph
from ..tools.models import LogicStep
from .context import ExecutionContext


@dataclass
class StepRuntime:
    """Everything a step handler may touch during one run."""

    tool_id: str
    graph: StepGraph
    context: ExecutionContext
    config: EngineConfig
    formula_cache: FormulaCache
    http_transport: TransportLike
    metrics: MetricsRegistry
    ai_provider: Optional[ModelProvider] = None
    host_resolver: Optional[HostResolver] = None

    def evaluate(self, step: LogicStep, formula: str, bindings: Optional[Mapping[str, Any]] = None) -> Any:
        node = self.formula_cache.get_or_parse((self.tool_id, step.id), formula)
        return ExpressionEvaluator(self.context if bindings is None else bindings).evaluate(node)
