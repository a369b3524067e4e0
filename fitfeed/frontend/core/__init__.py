"""
Frontend Core - Shared Handlers
===============================

Modules:
    - auth_handlers: auth.* messages against the connection's Session Store

Usage:
    from fitfeed.frontend.core import AUTH_HANDLERS, handle_login
"""

from .auth_handlers import (
    AUTH_HANDLERS,
    AuthenticationError,
    handle_admin_login,
    handle_login,
    handle_logout,
    handle_register,
    handle_session_state,
)

__all__ = [
    "AUTH_HANDLERS",
    "AuthenticationError",
    "handle_login",
    "handle_admin_login",
    "handle_register",
    "handle_logout",
    "handle_session_state",
]
