from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from ...adapters.http import (
    USER_AGENT,
    HttpRequest,
    HttpResponse,
    TransportError,
    check_outbound_url,
    ensure_public_host,
    error_detail,
    send_request,
    status_error_message,
)
from ...errors import StepExecutionError
from ...observability.logging_utils import redact_event
from ...templating import render_structure, render_template, render_url
from ...tools.models import ApiCallConfig, LogicStep
from ..control.timeouts import run_with_timeout
from ..models import StepOutcome
from ..runtime import StepRuntime

logger = logging.getLogger("fxns.adapters.http")

_TRANSPORT_MESSAGES = {
    "blocked": "The host '{host}' resolves to a private or internal address.",
    "dns": "Unable to resolve the API hostname '{host}'.",
    "refused": "Connection to '{host}' was refused. The service may be down.",
    "reset": "Connection to '{host}' was reset. Try again.",
    "timeout": "The API call to '{host}' timed out.",
}


def _build_request(config: ApiCallConfig, runtime: StepRuntime, timeout: float) -> HttpRequest:
    context = runtime.context
    url = render_url(config.url, context)
    headers: Dict[str, str] = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    for key, value in config.headers.items():
        headers[key] = render_template(value, context)
    body: Optional[bytes] = None
    if config.body is not None and config.method != "GET":
        rendered = render_structure(config.body, context)
        if isinstance(rendered, (dict, list)):
            body = json.dumps(rendered).encode("utf-8")
            if not any(k.lower() == "content-type" for k in headers):
                headers["Content-Type"] = "application/json"
        else:
            body = str(rendered).encode("utf-8")
    return HttpRequest(method=config.method, url=url, headers=headers, body=body, timeout=timeout)


async def _guarded_send(runtime: StepRuntime, request: HttpRequest, host: str) -> HttpResponse:
    if not runtime.config.allow_private_hosts:
        await ensure_public_host(host, runtime.host_resolver)
    return await send_request(runtime.http_transport, request)


async def run_api_call(step: LogicStep, runtime: StepRuntime) -> StepOutcome:
    config: ApiCallConfig = step.config
    timeout = config.timeout_seconds or runtime.config.api_timeout_seconds
    request = _build_request(config, runtime, timeout)
    try:
        host = check_outbound_url(request.url, allow_private_hosts=runtime.config.allow_private_hosts)
    except TransportError as exc:
        runtime.metrics.record_http_call(exc.kind)
        raise StepExecutionError(exc.message, step_id=step.id, cause=exc.kind) from exc
    logger.info(
        "api_call %s",
        redact_event({"step": step.id, "method": request.method, "url": request.url, "headers": request.headers}),
    )
    try:
        response = await run_with_timeout(
            _guarded_send(runtime, request, host),
            timeout,
            step_id=step.id,
            what=f"The API call to '{host}'",
        )
    except StepExecutionError:
        runtime.metrics.record_http_call("timeout")
        raise
    except TransportError as exc:
        runtime.metrics.record_http_call(exc.kind)
        template = _TRANSPORT_MESSAGES.get(exc.kind)
        message = template.format(host=host) if template else f"The API call to '{host}' failed: {exc.message}"
        raise StepExecutionError(message, step_id=step.id, cause=exc.kind) from exc
    if not response.ok:
        runtime.metrics.record_http_call(f"http_{response.status}")
        raise StepExecutionError(
            status_error_message(response.status, error_detail(response), request.url),
            step_id=step.id,
            status=response.status,
            cause="http_status",
        )
    runtime.metrics.record_http_call("ok")
    return StepOutcome(value=response.parsed_body())
