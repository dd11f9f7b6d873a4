"""
Step executor: walks a tool's logic steps over one execution context.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..adapters.http import HostResolver, HttpxTransport, TransportLike, resolve_host
from ..ai.providers import ModelProvider
from ..config import EngineConfig
from ..errors import DefinitionError, FxnsError, StepExecutionError
from ..formula import FormulaCache
from ..observability.metrics import MetricsRegistry, default_metrics
from ..tools.graph import StepGraph, structural_issues
from ..tools.models import END_STEP_ID, LogicStep
from .context import ExecutionContext
from .models import PipelineResult, StepOutcome, StepResult, StepStatus
from .runtime import StepRuntime
from .steps import STEP_HANDLERS

logger = logging.getLogger("fxns.pipeline")

StepCallback = Callable[[StepResult], Any]


class StepExecutor:
    """Runs logic steps one at a time, following next pointers and branches.

    One executor can serve many runs; per-run state lives in ``StepRuntime``.
    Only the formula cache is shared, and it holds immutable ASTs.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        http_transport: Optional[TransportLike] = None,
        ai_provider: Optional[ModelProvider] = None,
        formula_cache: Optional[FormulaCache] = None,
        metrics: Optional[MetricsRegistry] = None,
        host_resolver: Optional[HostResolver] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.http_transport = http_transport or HttpxTransport()
        self.ai_provider = ai_provider
        self.formula_cache = formula_cache or FormulaCache(
            self.config.formula_cache_size,
            max_depth=self.config.formula_max_depth,
            max_length=self.config.formula_max_length,
        )
        self.metrics = metrics or default_metrics
        self.host_resolver = host_resolver or resolve_host

    async def execute(
        self,
        steps: Sequence[LogicStep],
        context: Mapping[str, Any] | ExecutionContext,
        *,
        tool_id: str = "adhoc",
        step_callback: Optional[StepCallback] = None,
    ) -> PipelineResult:
        """Run ``steps`` over ``context``; ``step_callback`` sees each step result once it finishes or is cancelled."""
        ctx = context if isinstance(context, ExecutionContext) else ExecutionContext(context)
        issues = structural_issues([], steps, max_steps=self.config.max_steps)
        issues.extend(f"Step id '{step.id}' collides with an input value." for step in steps if step.id in ctx)
        if issues:
            raise DefinitionError(f"Tool '{tool_id}' cannot run: {issues[0]}", issues=issues)
        graph = StepGraph(steps)
        runtime = StepRuntime(
            tool_id=tool_id,
            graph=graph,
            context=ctx,
            config=self.config,
            formula_cache=self.formula_cache,
            http_transport=self.http_transport,
            metrics=self.metrics,
            ai_provider=self.ai_provider,
            host_resolver=self.host_resolver,
        )
        results: Dict[str, StepResult] = {step.id: StepResult(step.id, step.type) for step in steps}
        outcome = PipelineResult(context=ctx, steps=list(results.values()))
        current = graph.first_id
        executed = 0
        while current is not None:
            step = graph.by_id[current]
            result = results[current]
            executed += 1
            if executed > self.config.max_steps or result.status is not StepStatus.PENDING:
                error = StepExecutionError(
                    f"Run stopped after {executed - 1} steps: step limit reached.", step_id=step.id, cause="step_limit"
                )
                return self._fail(outcome, results, step, error)
            current = await self._run_step(step, result, runtime, outcome, step_callback)
            if step_callback is not None:
                step_callback(result)
            if outcome.status == "failed":
                self._skip_pending(results)
                return outcome
        self._skip_pending(results)
        return outcome

    async def _run_step(
        self,
        step: LogicStep,
        result: StepResult,
        runtime: StepRuntime,
        outcome: PipelineResult,
        step_callback: Optional[StepCallback] = None,
    ) -> Optional[str]:
        handler = STEP_HANDLERS[step.type]
        result.status = StepStatus.RUNNING
        logger.debug("step %s (%s) running", step.id, step.type)
        start = time.monotonic()
        error: Optional[FxnsError] = None
        step_outcome = StepOutcome(skipped=True)
        try:
            step_outcome = await handler(step, runtime)
            if not step_outcome.skipped:
                runtime.context.set(step.id, step_outcome.value)
        except asyncio.CancelledError:
            result.status = StepStatus.FAILED
            result.error = "cancelled"
            result.duration_seconds = time.monotonic() - start
            self.metrics.record_step(step.type, result.duration_seconds, failed=True)
            logger.info("step %s cancelled", step.id)
            if step_callback is not None:
                step_callback(result)
            raise
        except FxnsError as exc:
            error = exc
        except Exception as exc:
            logger.exception("step %s raised an unexpected error", step.id)
            error = StepExecutionError(
                f"Step '{step.label}' failed unexpectedly: {exc}", step_id=step.id, cause=type(exc).__name__
            )
        result.duration_seconds = time.monotonic() - start
        self.metrics.record_step(step.type, result.duration_seconds, failed=error is not None)

        if error is not None:
            if hasattr(error, "step_id") and error.step_id is None:
                error.step_id = step.id
            result.status = StepStatus.FAILED
            result.error = error.message
            if not step.continue_on_error:
                logger.warning("step %s failed: %s", step.id, error.message)
                outcome.status = "failed"
                outcome.failed_step_id = step.id
                outcome.error = error
                return None
            logger.info("step %s failed, continuing: %s", step.id, error.message)
            if step.id not in runtime.context:
                runtime.context.set(
                    step.id, {"ok": False, "error": error.message, "status": getattr(error, "status", None)}
                )
            return runtime.graph.fallthrough(step)

        if step_outcome.skipped:
            result.status = StepStatus.SKIPPED
            logger.debug("step %s skipped", step.id)
        else:
            result.status = StepStatus.COMPLETED
            result.output = step_outcome.value
            outcome.last_completed_step_id = step.id
            logger.debug("step %s completed in %.4fs", step.id, result.duration_seconds)
        if step_outcome.routed:
            target = step_outcome.next_step_id
            return None if target in (None, END_STEP_ID) else target
        return runtime.graph.fallthrough(step)

    def _fail(
        self, outcome: PipelineResult, results: Dict[str, StepResult], step: LogicStep, error: FxnsError
    ) -> PipelineResult:
        outcome.status = "failed"
        outcome.failed_step_id = step.id
        outcome.error = error
        self._skip_pending(results)
        return outcome

    @staticmethod
    def _skip_pending(results: Dict[str, StepResult]) -> None:
        for item in results.values():
            if item.status is StepStatus.PENDING:
                item.status = StepStatus.SKIPPED
