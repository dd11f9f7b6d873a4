"""
FastAPI application factory for the fxns engine.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..adapters.http import TransportLike
from ..ai.providers import ModelProvider
from ..ai.registry import build_provider
from ..config import EngineConfig, load_config
from ..errors import (
    DefinitionError,
    FxnsError,
    InvalidStatusTransition,
    ToolNotFoundError,
    ValidationError,
)
from ..harness.runner import ToolRunner
from ..observability.metrics import default_metrics
from ..pipeline.executor import StepExecutor
from ..store import build_store
from ..store.base import ToolStore
from ..version import __version__
from .routes import build_drafts_router, build_health_router, build_metrics_router, build_tools_router

logger = logging.getLogger("fxns.server")


def status_for_error(exc: FxnsError) -> int:
    if isinstance(exc, ToolNotFoundError):
        return 404
    if isinstance(exc, (ValidationError, DefinitionError)):
        return 422
    if isinstance(exc, InvalidStatusTransition):
        return 409
    return 400


def create_app(
    store: Optional[ToolStore] = None,
    runner: Optional[ToolRunner] = None,
    config: Optional[EngineConfig] = None,
    *,
    http_transport: Optional[TransportLike] = None,
    ai_provider: Optional[ModelProvider] = None,
) -> FastAPI:
    """Create the FastAPI app."""

    config = config or load_config()
    if store is None:
        store = runner.store if runner is not None and runner.store is not None else build_store(config)
    metrics = runner.metrics if runner is not None else default_metrics
    if runner is None:
        executor = StepExecutor(
            config,
            http_transport=http_transport,
            ai_provider=ai_provider or build_provider(config),
            metrics=metrics,
        )
        runner = ToolRunner(store, executor=executor, config=config, metrics=metrics)
    elif runner.store is None:
        runner.store = store

    app = FastAPI(title="fxns", version=__version__)

    @app.exception_handler(FxnsError)
    async def handle_fxns_error(request: Request, exc: FxnsError) -> JSONResponse:
        status = status_for_error(exc)
        logger.info("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status, content=exc.to_payload())

    app.include_router(build_health_router())
    app.include_router(build_drafts_router(store, runner))
    app.include_router(build_tools_router(store, runner))
    app.include_router(build_metrics_router(metrics))
    app.state.store = store
    app.state.runner = runner
    app.state.config = config
    return app


__all__ = ["create_app", "status_for_error"]
