"""
fxns tool logic engine: runs user-authored tools (form, logic pipeline, output view).
"""

from .version import __version__, DEFINITION_VERSION  # noqa: F401

__all__ = [
    "formula",
    "tools",
    "pipeline",
    "output",
    "harness",
    "store",
    "server",
    "errors",
    "__version__",
    "DEFINITION_VERSION",
]
