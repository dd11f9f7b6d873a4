"""
Draft and published-tool storage.

Stores keep the camelCase wire form of each record, so every read hands the
engine a fresh, independent snapshot.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config import DEFAULT_MAX_STEPS
from ..errors import DefinitionError, InvalidStatusTransition, ToolNotFoundError
from ..tools.codec import draft_from_dict, draft_to_dict, published_from_dict, published_to_dict
from ..tools.graph import publish_issues, validate_draft
from ..tools.models import PublishedTool, ToolDraft

logger = logging.getLogger("fxns.store")

STATUS_TRANSITIONS = {
    "draft": {"testing"},
    "testing": {"draft", "published"},
    "published": {"draft", "testing"},
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ToolStore(ABC):
    def __init__(self, *, max_steps: int = DEFAULT_MAX_STEPS) -> None:
        self.max_steps = max_steps
        self._lock = threading.RLock()

    # storage primitives

    @abstractmethod
    def _read_draft(self, draft_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def _write_draft(self, draft_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def _read_tool(self, tool_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def _write_tool(self, tool_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def _published_id_for(self, draft_id: str) -> Optional[str]:
        """Id of the tool previously published from ``draft_id``, if any."""

    # operations

    def get_draft(self, draft_id: str) -> ToolDraft:
        data = self._read_draft(draft_id)
        if data is None:
            raise ToolNotFoundError(f"Draft '{draft_id}' was not found.")
        return draft_from_dict(data)

    def save_draft(self, draft: ToolDraft) -> ToolDraft:
        """Validate and store ``draft``; an existing draft keeps its status."""
        validate_draft(draft, max_steps=self.max_steps)
        with self._lock:
            existing = self._read_draft(draft.id)
            draft.status = existing.get("status", "draft") if existing else "draft"
            draft.updated_at = _now()
            self._write_draft(draft.id, draft_to_dict(draft))
        logger.info("saved draft %s (%d steps)", draft.id, len(draft.logic_config))
        return self.get_draft(draft.id)

    def set_status(self, draft_id: str, status: str) -> ToolDraft:
        if status == "published":
            self.publish(draft_id)
            return self.get_draft(draft_id)
        with self._lock:
            draft = self.get_draft(draft_id)
            if status not in STATUS_TRANSITIONS.get(draft.status, set()):
                raise InvalidStatusTransition(f"Cannot move draft '{draft_id}' from {draft.status} to {status}.")
            draft.status = status
            draft.updated_at = _now()
            self._write_draft(draft_id, draft_to_dict(draft))
        return draft

    def publish(self, draft_id: str) -> PublishedTool:
        with self._lock:
            draft = self.get_draft(draft_id)
            if draft.status != "testing":
                raise InvalidStatusTransition(
                    f"Draft '{draft_id}' must be in testing before it can be published (it is {draft.status})."
                )
            issues = publish_issues(
                draft.input_config, draft.logic_config, draft.output_config, max_steps=self.max_steps
            )
            if issues:
                raise DefinitionError(f"Draft '{draft_id}' cannot be published: {issues[0]}", issues=issues)
            tool_id = self._published_id_for(draft_id) or f"tool_{uuid.uuid4().hex}"
            tool = PublishedTool(
                id=tool_id,
                draft_id=draft.id,
                name=draft.name,
                description=draft.description,
                category=draft.category,
                input_config=draft.input_config,
                logic_config=draft.logic_config,
                output_config=draft.output_config,
                published_at=_now(),
            )
            self._write_tool(tool_id, published_to_dict(tool))
            draft.status = "published"
            draft.updated_at = tool.published_at
            self._write_draft(draft_id, draft_to_dict(draft))
        logger.info("published draft %s as %s", draft_id, tool_id)
        return self.get_published(tool_id)

    def get_published(self, tool_id: str) -> PublishedTool:
        data = self._read_tool(tool_id)
        if data is None:
            raise ToolNotFoundError(f"Tool '{tool_id}' was not found.")
        return published_from_dict(data)
