"""
Central version constant for fxns.
"""

__version__ = "1.0.0"

# Version of the persisted tool definition format (drafts and published tools).
DEFINITION_VERSION = "1.0"
