"""Draft authoring routes: save, load, status changes, test runs and publishing."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...harness.runner import ToolRunner
from ...store.base import ToolStore
from ...tools.codec import draft_from_dict, draft_to_dict, published_to_dict
from ..disconnect import CLIENT_CLOSED_REQUEST, run_until_disconnect
from ..schemas import DraftRequest, DraftTestRequest, StatusRequest


def build_drafts_router(store: ToolStore, runner: ToolRunner) -> APIRouter:
    router = APIRouter(prefix="/api/drafts")

    @router.put("/{draft_id}")
    def save_draft(draft_id: str, payload: DraftRequest) -> Dict[str, Any]:
        draft = draft_from_dict(payload.to_wire(draft_id))
        return draft_to_dict(store.save_draft(draft))

    @router.get("/{draft_id}")
    def get_draft(draft_id: str) -> Dict[str, Any]:
        return draft_to_dict(store.get_draft(draft_id))

    @router.post("/{draft_id}/status")
    def set_status(draft_id: str, payload: StatusRequest) -> Dict[str, Any]:
        return draft_to_dict(store.set_status(draft_id, payload.status))

    @router.post("/{draft_id}/test")
    async def test_draft(draft_id: str, request: Request, payload: Optional[DraftTestRequest] = None):
        test_data = payload.test_data if payload else {}
        result = await run_until_disconnect(request, runner.a_test_tool(draft_id, test_data))
        if result is None:
            return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"success": False, "error": "Cancelled."})
        result["executionTime"] = result.get("executionTimeMs")
        return result

    @router.post("/{draft_id}/publish")
    def publish_draft(draft_id: str) -> Dict[str, Any]:
        return published_to_dict(store.publish(draft_id))

    return router


__all__ = ["build_drafts_router"]
