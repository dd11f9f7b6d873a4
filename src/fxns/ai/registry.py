from __future__ import annotations

import logging

from ..config import EngineConfig
from ..errors import ConfigurationError
from .openai_provider import OpenAIProvider
from .providers import DummyProvider, ModelProvider

logger = logging.getLogger("fxns.ai")


def build_provider(config: EngineConfig) -> ModelProvider:
    """Create the provider named by ``config.ai_provider``."""
    name = (config.ai_provider or "openai").lower()
    if name == "dummy":
        return DummyProvider("dummy", default_model=config.openai_model)
    if name == "openai":
        if not config.openai_api_key:
            logger.warning("No OpenAI API key configured; ai_analysis steps will fail until one is set.")
        return OpenAIProvider(
            name="openai",
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            default_model=config.openai_model,
        )
    raise ConfigurationError(f"Unknown AI provider '{config.ai_provider}'. Use 'openai' or 'dummy'.")
