from typing import Optional

from ..config import EngineConfig
from .base import STATUS_TRANSITIONS, ToolStore
from .files import JsonFileToolStore
from .memory import InMemoryToolStore


def build_store(config: Optional[EngineConfig] = None) -> ToolStore:
    config = config or EngineConfig()
    if config.store_dir:
        return JsonFileToolStore(config.store_dir, max_steps=config.max_steps)
    return InMemoryToolStore(max_steps=config.max_steps)


__all__ = ["STATUS_TRANSITIONS", "InMemoryToolStore", "JsonFileToolStore", "ToolStore", "build_store"]
