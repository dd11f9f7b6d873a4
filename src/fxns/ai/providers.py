"""
Model providers for ai_analysis steps.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ModelProvider(ABC):
    """Abstract model provider.

    ``invoke`` may be a coroutine or a plain function; sync providers are run
    in a worker thread by ``call_provider``. The returned dict carries the
    model's reply text under ``"result"``.
    """

    def __init__(self, name: str, default_model: str | None = None) -> None:
        self.name = name
        self.default_model = default_model

    @abstractmethod
    def invoke(self, messages: List[Dict[str, str]], **kwargs: Any) -> Any:
        """Invoke the provider with a chat-style messages array."""


class DummyProvider(ModelProvider):
    """Deterministic provider used for tests/CI and local runs without credentials."""

    def __init__(self, name: str = "dummy", default_model: str | None = None, reply: str | None = None) -> None:
        super().__init__(name, default_model=default_model or "dummy-model")
        self.reply = reply
        self.calls: List[List[Dict[str, str]]] = []

    def invoke(self, messages: List[Dict[str, str]], **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(messages)
        user_content = messages[-1]["content"] if messages else ""
        result = self.reply if self.reply is not None else f"[dummy output from {self.name}] {user_content}".strip()
        return {
            "provider": self.name,
            "model": kwargs.get("model") or self.default_model,
            "result": result,
        }


async def call_provider(provider: ModelProvider, messages: List[Dict[str, str]], **kwargs: Any) -> Dict[str, Any]:
    if inspect.iscoroutinefunction(provider.invoke):
        return await provider.invoke(messages, **kwargs)
    return await asyncio.to_thread(provider.invoke, messages, **kwargs)
