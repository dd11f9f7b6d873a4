from .timeouts import run_with_timeout

__all__ = ["run_with_timeout"]
