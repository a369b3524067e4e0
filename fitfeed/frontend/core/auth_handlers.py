"""
WebSocket Authentication Handlers
=================================

Translate ``auth.*`` WebSocket messages into Session Store operations and
shape the replies the front end expects.

Events Handled:
    - auth.login:         password sign-in (User arrives with SIGNED_IN)
    - auth.admin_login:   sign-in restricted to profiles flagged is_admin
    - auth.register:      sign-up + profile row
    - auth.logout:        end the session
    - auth.session_state: current state of the Session Store

Every handler returns ``{"type": ..., "payload": ...}``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from fitfeed.models import AuthResult
from fitfeed.session import SessionStore
from fitfeed.ws_events import WS_EVENTS

logger = logging.getLogger("fitfeed.auth_handlers")


class AuthenticationError(Exception):
    """The request payload cannot be used to authenticate."""
    pass


def _credentials(payload: Dict[str, Any]) -> tuple[str, str]:
    email = (payload.get("email") or "").strip()
    password = payload.get("password") or ""
    if not email:
        raise AuthenticationError("Missing email")
    if not password:
        raise AuthenticationError("Missing password")
    return email, password


def _login_error(message: str, code: str) -> Dict[str, Any]:
    return {
        "type": WS_EVENTS.AUTH.LOGIN_ERROR,
        "payload": {
            "success": False,
            "error": message,
            "code": code,
        },
    }


async def _run_credential_flow(
    name: str,
    operation: Callable[[str, str], Awaitable[AuthResult]],
    store: SessionStore,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    try:
        email, password = _credentials(payload)
    except AuthenticationError as e:
        logger.warning("[AUTH] %s rejected: %s", name, e)
        return _login_error(str(e), "INVALID_ARGS")

    result = await operation(email, password)
    if not result.ok:
        return _login_error(result.error, "AUTH_FAILED")

    return {
        "type": WS_EVENTS.AUTH.LOGIN_SUCCESS,
        "payload": {
            "success": True,
            "flow": name,
            # login() leaves this unset until SIGNED_IN arrives
            "session": store.snapshot(),
        },
    }


async def handle_login(store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await _run_credential_flow("login", store.login, store, payload)


async def handle_admin_login(store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await _run_credential_flow("admin_login", store.admin_login, store, payload)


async def handle_register(store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await _run_credential_flow("register", store.register, store, payload)


async def handle_logout(store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    result = await store.logout()
    response = {"success": True, "session": store.snapshot()}
    if not result.ok:
        # local state is cleared regardless; surface the backend's complaint
        response["warning"] = result.error
    return {"type": WS_EVENTS.AUTH.LOGOUT, "payload": response}


async def handle_session_state(store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": WS_EVENTS.AUTH.SESSION_STATE, "payload": store.snapshot()}


AUTH_HANDLERS = {
    WS_EVENTS.AUTH.LOGIN: handle_login,
    WS_EVENTS.AUTH.ADMIN_LOGIN: handle_admin_login,
    WS_EVENTS.AUTH.REGISTER: handle_register,
    WS_EVENTS.AUTH.LOGOUT: handle_logout,
    WS_EVENTS.AUTH.SESSION_STATE: handle_session_state,
}


__all__ = [
    "AuthenticationError",
    "AUTH_HANDLERS",
    "handle_login",
    "handle_admin_login",
    "handle_register",
    "handle_logout",
    "handle_session_state",
]
