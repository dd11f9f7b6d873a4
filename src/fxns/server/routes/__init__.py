from .drafts import build_drafts_router
from .health import build_health_router
from .metrics import build_metrics_router
from .tools import build_tools_router

__all__ = ["build_drafts_router", "build_health_router", "build_metrics_router", "build_tools_router"]
