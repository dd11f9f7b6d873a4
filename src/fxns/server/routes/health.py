"""Health route."""

from __future__ import annotations

from fastapi import APIRouter

from ...version import __version__
from ..schemas import HealthResponse


def build_health_router() -> APIRouter:
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return router


__all__ = ["build_health_router"]
