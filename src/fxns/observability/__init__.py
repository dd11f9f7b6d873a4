from .logging_utils import redact_event, redact_metadata, redact_prompt, redact_url
from .metrics import MetricsRegistry, default_metrics

__all__ = ["MetricsRegistry", "default_metrics", "redact_event", "redact_metadata", "redact_prompt", "redact_url"]
