"""
JSON-file store: one file per draft and per published tool.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ToolNotFoundError
from .base import ToolStore

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class JsonFileToolStore(ToolStore):
    def __init__(self, root: str | os.PathLike[str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.root = Path(root)
        self.drafts_dir = self.root / "drafts"
        self.tools_dir = self.root / "tools"
        self.drafts_dir.mkdir(parents=True, exist_ok=True)
        self.tools_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, directory: Path, record_id: str) -> Path:
        if not _SAFE_ID.match(record_id):
            raise ToolNotFoundError(f"'{record_id}' is not a valid id.")
        return directory / f"{record_id}.json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, path: Path, data: Dict[str, Any]) -> None:
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(path)

    def _read_draft(self, draft_id: str) -> Optional[Dict[str, Any]]:
        return self._read(self._path(self.drafts_dir, draft_id))

    def _write_draft(self, draft_id: str, data: Dict[str, Any]) -> None:
        self._write(self._path(self.drafts_dir, draft_id), data)

    def _read_tool(self, tool_id: str) -> Optional[Dict[str, Any]]:
        return self._read(self._path(self.tools_dir, tool_id))

    def _write_tool(self, tool_id: str, data: Dict[str, Any]) -> None:
        self._write(self._path(self.tools_dir, tool_id), data)

    def _published_id_for(self, draft_id: str) -> Optional[str]:
        for path in sorted(self.tools_dir.glob("*.json")):
            data = self._read(path)
            if data and data.get("draftId") == draft_id:
                return path.stem
        return None
