"""
AI providers used by ai_analysis steps.
"""

from .openai_provider import OpenAIProvider
from .providers import DummyProvider, ModelProvider, call_provider
from .registry import build_provider

__all__ = ["DummyProvider", "ModelProvider", "OpenAIProvider", "build_provider", "call_provider"]
