from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from .base import ToolStore


class InMemoryToolStore(ToolStore):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._drafts: Dict[str, Dict[str, Any]] = {}
        self._tools: Dict[str, Dict[str, Any]] = {}

    def _read_draft(self, draft_id: str) -> Optional[Dict[str, Any]]:
        data = self._drafts.get(draft_id)
        return copy.deepcopy(data) if data is not None else None

    def _write_draft(self, draft_id: str, data: Dict[str, Any]) -> None:
        self._drafts[draft_id] = copy.deepcopy(data)

    def _read_tool(self, tool_id: str) -> Optional[Dict[str, Any]]:
        data = self._tools.get(tool_id)
        return copy.deepcopy(data) if data is not None else None

    def _write_tool(self, tool_id: str, data: Dict[str, Any]) -> None:
        self._tools[tool_id] = copy.deepcopy(data)

    def _published_id_for(self, draft_id: str) -> Optional[str]:
        for tool_id, data in self._tools.items():
            if data.get("draftId") == draft_id:
                return tool_id
        return None
