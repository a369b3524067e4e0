"""
Session state for one connected client.

Usage:
    from fitfeed.session import SessionStore
"""

from .store import (
    ALREADY_SIGNED_IN,
    INVALID_ADMIN_CREDENTIALS,
    UNEXPECTED_ERROR,
    SessionStore,
)

__all__ = [
    "SessionStore",
    "UNEXPECTED_ERROR",
    "INVALID_ADMIN_CREDENTIALS",
    "ALREADY_SIGNED_IN",
]
