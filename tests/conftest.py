import pytest

from fxns.observability.metrics import default_metrics
from fxns.pipeline import executor as executor_module

from support import StaticResolver


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep engine settings, DNS and shared metrics independent of the host environment."""
    for name in ("FXNS_STORE_DIR", "FXNS_ALLOW_PRIVATE_HOSTS", "FXNS_OPENAI_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FXNS_AI_PROVIDER", "dummy")
    monkeypatch.setattr(executor_module, "resolve_host", StaticResolver())
    default_metrics.reset()
    yield
    default_metrics.reset()
