"""Metrics endpoint routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from ...observability.metrics import MetricsRegistry


def build_metrics_router(metrics: MetricsRegistry) -> APIRouter:
    router = APIRouter()

    @router.get("/api/metrics")
    def api_metrics() -> Dict[str, Any]:
        return {"metrics": metrics.snapshot()}

    return router


__all__ = ["build_metrics_router"]
