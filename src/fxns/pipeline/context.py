"""
Per-run execution context.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, Mapping, Optional

from ..errors import ContextWriteError


class ExecutionContext(Mapping[str, Any]):
    """Append-only mapping from field ids and step ids to values.

    Seeded once from validated input; each completed step adds exactly one
    entry under its own id. Overwriting an existing key is an error.
    """

    def __init__(self, seed: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(seed or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def set(self, key: str, value: Any) -> None:
        if key in self._values:
            raise ContextWriteError(f"Context entry '{key}' is already set and cannot be overwritten.")
        self._values[key] = value

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"ExecutionContext({sorted(self._values)})"
