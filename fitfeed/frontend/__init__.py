"""
Frontend Layer - WebSocket Handlers
===================================

Structure:
    frontend/
    ├── core/
    │   └── auth_handlers.py       # auth.* -> SessionStore
    └── pages/
        └── motivation/
            └── handlers.py        # motivation.* -> FeedView

Architecture Pattern:
    Front end → WebSocket (/ws) → frontend/ handlers → SessionStore / FeedView → Supabase
"""

from .core import AUTH_HANDLERS, AuthenticationError
from .pages import MOTIVATION_HANDLERS, feed_message

__all__ = [
    "AUTH_HANDLERS",
    "AuthenticationError",
    "MOTIVATION_HANDLERS",
    "feed_message",
]
