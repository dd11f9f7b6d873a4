"""
Centralized configuration loader for the engine, its collaborators and the server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_TIMEOUT_SECONDS = 10.0
DEFAULT_AI_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_STEPS = 200
DEFAULT_FORMULA_MAX_DEPTH = 32
DEFAULT_FORMULA_MAX_LENGTH = 2000
DEFAULT_FORMULA_CACHE_SIZE = 512


@dataclass
class EngineConfig:
    api_timeout_seconds: float = DEFAULT_API_TIMEOUT_SECONDS
    ai_timeout_seconds: float = DEFAULT_AI_TIMEOUT_SECONDS
    max_steps: int = DEFAULT_MAX_STEPS
    formula_max_depth: int = DEFAULT_FORMULA_MAX_DEPTH
    formula_max_length: int = DEFAULT_FORMULA_MAX_LENGTH
    formula_cache_size: int = DEFAULT_FORMULA_CACHE_SIZE
    allow_private_hosts: bool = False
    ai_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    store_dir: Optional[str] = None


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        value = float(environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    try:
        value = int(environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _env_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    val = environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def load_config(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    environ = env if env is not None else os.environ
    return EngineConfig(
        api_timeout_seconds=_env_float(environ, "FXNS_API_TIMEOUT_SECONDS", DEFAULT_API_TIMEOUT_SECONDS),
        ai_timeout_seconds=_env_float(environ, "FXNS_AI_TIMEOUT_SECONDS", DEFAULT_AI_TIMEOUT_SECONDS),
        max_steps=_env_int(environ, "FXNS_MAX_STEPS", DEFAULT_MAX_STEPS),
        formula_max_depth=_env_int(environ, "FXNS_FORMULA_MAX_DEPTH", DEFAULT_FORMULA_MAX_DEPTH),
        formula_max_length=_env_int(environ, "FXNS_FORMULA_MAX_LENGTH", DEFAULT_FORMULA_MAX_LENGTH),
        formula_cache_size=_env_int(environ, "FXNS_FORMULA_CACHE_SIZE", DEFAULT_FORMULA_CACHE_SIZE),
        allow_private_hosts=_env_bool(environ, "FXNS_ALLOW_PRIVATE_HOSTS", False),
        ai_provider=(environ.get("FXNS_AI_PROVIDER") or "openai").strip().lower(),
        openai_api_key=environ.get("FXNS_OPENAI_API_KEY") or environ.get("OPENAI_API_KEY"),
        openai_model=environ.get("FXNS_OPENAI_MODEL") or "gpt-4o-mini",
        openai_base_url=environ.get("FXNS_OPENAI_BASE_URL"),
        store_dir=environ.get("FXNS_STORE_DIR"),
    )
