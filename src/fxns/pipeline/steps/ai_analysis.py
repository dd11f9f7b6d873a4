from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

from ...ai.providers import call_provider
from ...errors import ProviderError, StepExecutionError
from ...observability.logging_utils import redact_prompt
from ...templating import render_template
from ...tools.models import AiAnalysisConfig, LogicStep
from ..control.timeouts import run_with_timeout
from ..models import StepOutcome
from ..runtime import StepRuntime

logger = logging.getLogger("fxns.ai")

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def shape_reply(text: str, output_format: str) -> Any:
    if output_format == "json":
        candidate = text.strip()
        fenced = _FENCE.match(candidate)
        if fenced:
            candidate = fenced.group(1)
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            return {"text": text, "parsed": False}
    if output_format == "markdown":
        return {"markdown": text}
    return {"text": text}


async def run_ai_analysis(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: AiAnalysisConfig = step.config
    provider = runtime.ai_provider
    if provider is None:
        raise StepExecutionError("AI analysis is not configured for this engine.", step_id=step.id, cause="configuration")
    prompt = render_template(config.prompt, runtime.context)
    messages = [{"role": "user", "content": prompt}]
    kwargs: Dict[str, Any] = {
        "model": config.model,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens or (1000 if config.output_format == "json" else 500),
    }
    timeout = config.timeout_seconds or runtime.config.ai_timeout_seconds
    logger.info("ai_analysis step=%s provider=%s prompt=%s", step.id, provider.name, redact_prompt(prompt))
    try:
        reply = await run_with_timeout(
            call_provider(provider, messages, **kwargs),
            timeout,
            step_id=step.id,
            what="AI analysis",
        )
    except ProviderError as exc:
        raise StepExecutionError(exc.message, step_id=step.id, status=exc.status, cause="provider") from exc
    text = reply.get("result", "") if isinstance(reply, dict) else str(reply)
    return StepOutcome(value=shape_reply(str(text or ""), config.output_format))
