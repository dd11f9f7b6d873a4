"""
HTTP surface for drafts, published tools, health and metrics.
"""

from .app import create_app, status_for_error

__all__ = ["create_app", "status_for_error"]
