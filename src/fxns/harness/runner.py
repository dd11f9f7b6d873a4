"""
Test and run entry points: validate input, seed the context, execute, render.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import EngineConfig
from ..errors import ConfigurationError, DefinitionError, FxnsError
from ..observability.metrics import MetricsRegistry, default_metrics
from ..output.renderer import OutputRenderer, RenderedOutput
from ..pipeline.context import ExecutionContext
from ..pipeline.executor import StepExecutor
from ..pipeline.models import PipelineResult
from ..store.base import ToolStore
from ..tools.models import FormField, LogicStep, OutputConfig
from .inputs import validate_input

logger = logging.getLogger("fxns.harness")

PUBLISHED_CONFIGURATION_MESSAGE = "This tool is not set up correctly. Please contact the tool author."


@dataclass
class RunOutcome:
    success: bool
    rendered: Optional[RenderedOutput] = None
    error: Optional[FxnsError] = None
    pipeline: Optional[PipelineResult] = None
    duration_ms: float = 0.0
    inputs: Dict[str, Any] = field(default_factory=dict)

    def step_summaries(self) -> List[Dict[str, Any]]:
        if self.pipeline is None:
            return []
        return [item.to_dict() for item in self.pipeline.steps]


def select_result(pipeline: PipelineResult, output: OutputConfig, inputs: Mapping[str, Any]) -> Any:
    """``context[sourceStepId]``, else the last completed step's output, else the input."""
    context = pipeline.context
    if output.source_step_id and output.source_step_id in context:
        return context[output.source_step_id]
    if pipeline.last_completed_step_id is not None:
        return context[pipeline.last_completed_step_id]
    return dict(inputs)


class ToolRunner:
    """Runs drafts (test mode) and published tools against a ``ToolStore``."""

    def __init__(
        self,
        store: Optional[ToolStore] = None,
        *,
        executor: Optional[StepExecutor] = None,
        renderer: Optional[OutputRenderer] = None,
        config: Optional[EngineConfig] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.config = config or (executor.config if executor else EngineConfig())
        self.metrics = metrics or default_metrics
        self.store = store
        self.executor = executor or StepExecutor(self.config, metrics=self.metrics)
        self.renderer = renderer or OutputRenderer()

    def _require_store(self) -> ToolStore:
        if self.store is None:
            raise ConfigurationError("This runner has no tool store.")
        return self.store

    async def a_run_definition(
        self,
        fields: Sequence[FormField],
        steps: Sequence[LogicStep],
        output: Optional[OutputConfig],
        data: Optional[Mapping[str, Any]],
        *,
        tool_id: str = "adhoc",
        mode: str = "definition",
    ) -> RunOutcome:
        output = output or OutputConfig()
        start = time.perf_counter()
        outcome = RunOutcome(success=False)
        try:
            outcome.inputs = validate_input(fields, data)
            pipeline = await self.executor.execute(steps, ExecutionContext(outcome.inputs), tool_id=tool_id)
            outcome.pipeline = pipeline
            if pipeline.succeeded:
                result = select_result(pipeline, output, outcome.inputs)
                outcome.rendered = self.renderer.render(result, output, pipeline.context)
                outcome.success = True
            else:
                outcome.error = pipeline.error
        except FxnsError as exc:
            outcome.error = exc
        outcome.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        self.metrics.record_run(mode, outcome.duration_ms / 1000, success=outcome.success)
        if outcome.success:
            logger.info("%s run of %s succeeded in %.2fms", mode, tool_id, outcome.duration_ms)
        else:
            logger.info(
                "%s run of %s failed in %.2fms: %s",
                mode,
                tool_id,
                outcome.duration_ms,
                outcome.error.message if outcome.error else "unknown error",
            )
        return outcome

    def run_definition(self, *args: Any, **kwargs: Any) -> RunOutcome:
        return asyncio.run(self.a_run_definition(*args, **kwargs))

    async def a_test_tool(self, draft_id: str, test_data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run a draft with author-facing diagnostics."""
        draft = self._require_store().get_draft(draft_id)
        outcome = await self.a_run_definition(
            draft.input_config,
            draft.logic_config,
            draft.output_config,
            test_data,
            tool_id=draft.id,
            mode="test",
        )
        payload: Dict[str, Any]
        if outcome.success and outcome.rendered is not None:
            payload = {"success": True, "result": outcome.rendered.to_dict()}
        else:
            payload = outcome.error.to_payload() if outcome.error else {"success": False, "error": "Unknown error."}
        if outcome.pipeline is not None:
            payload["steps"] = outcome.step_summaries()
        payload["executionTimeMs"] = outcome.duration_ms
        return payload

    def test_tool(self, draft_id: str, test_data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return asyncio.run(self.a_test_tool(draft_id, test_data))

    async def a_run_published_tool(self, tool_id: str, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run a published tool; configuration details never reach the end user."""
        tool = self._require_store().get_published(tool_id)
        outcome = await self.a_run_definition(
            tool.input_config,
            tool.logic_config,
            tool.output_config,
            data,
            tool_id=tool.id,
            mode="published",
        )
        if outcome.success and outcome.rendered is not None:
            return {"success": True, "outputs": outcome.rendered.to_dict(), "durationMs": outcome.duration_ms}
        error = outcome.error
        if isinstance(error, (ConfigurationError, DefinitionError)):
            logger.error("published tool %s is misconfigured: %s", tool_id, error.message)
            payload: Dict[str, Any] = {"success": False, "error": PUBLISHED_CONFIGURATION_MESSAGE}
        elif error is not None:
            payload = error.to_payload()
            payload.pop("issues", None)
        else:
            payload = {"success": False, "error": "Unknown error."}
        payload["durationMs"] = outcome.duration_ms
        return payload

    def run_published_tool(self, tool_id: str, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return asyncio.run(self.a_run_published_tool(tool_id, data))
