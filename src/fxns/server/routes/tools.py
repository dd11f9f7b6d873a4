"""Published tool routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...harness.runner import ToolRunner
from ...store.base import ToolStore
from ...tools.codec import published_to_dict
from ..disconnect import CLIENT_CLOSED_REQUEST, run_until_disconnect
from ..schemas import RunToolRequest


def build_tools_router(store: ToolStore, runner: ToolRunner) -> APIRouter:
    router = APIRouter(prefix="/api/tools")

    @router.get("/{tool_id}")
    def get_tool(tool_id: str) -> Dict[str, Any]:
        return published_to_dict(store.get_published(tool_id))

    @router.post("/{tool_id}/run")
    async def run_tool(tool_id: str, request: Request, payload: Optional[RunToolRequest] = None):
        data = payload.input if payload else {}
        result = await run_until_disconnect(request, runner.a_run_published_tool(tool_id, data))
        if result is None:
            return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"success": False, "error": "Cancelled."})
        return result

    return router


__all__ = ["build_tools_router"]
