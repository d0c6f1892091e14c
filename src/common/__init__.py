"""
Common utilities for the archive-encryption wizard.

Modules:
- backend: async client for the upload/encrypt/download endpoints
- messages: localized user-facing strings
- log: structlog configuration
"""

__all__ = [
    "backend",
    "messages",
    "log",
]
