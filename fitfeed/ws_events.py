"""
WebSocket Event Constants
=========================

Message types exchanged over ``/ws``. The front end keeps the same list.

Usage:
    from fitfeed.ws_events import WS_EVENTS

    await ws.send_json({
        "type": WS_EVENTS.MOTIVATION.FEED,
        "payload": {...}
    })

Naming: domain prefix (auth, motivation), action suffix.
"""


# ============================================
# AUTH Events
# ============================================
class AuthEvents:
    """Authentication events."""
    # inbound
    LOGIN = "auth.login"
    ADMIN_LOGIN = "auth.admin_login"
    REGISTER = "auth.register"
    LOGOUT = "auth.logout"
    # both directions: request / push of the current session state
    SESSION_STATE = "auth.session_state"
    # outbound
    LOGIN_SUCCESS = "auth.login_success"
    LOGIN_ERROR = "auth.login_error"


# ============================================
# Motivation Feed Events
# ============================================
class MotivationEvents:
    """Daily motivation feed events."""
    FETCH = "motivation.fetch"
    TOGGLE_FAVORITE = "motivation.toggle_favorite"
    SET_FILTER = "motivation.set_filter"
    FEED = "motivation.feed"
    ERROR = "motivation.error"


# ============================================
# Consolidated WS_EVENTS Class
# ============================================
class WS_EVENTS:
    """
    Single access point for every WebSocket event.

    Usage:
        event_type = WS_EVENTS.AUTH.LOGIN_SUCCESS
    """
    AUTH = AuthEvents
    MOTIVATION = MotivationEvents
    ERROR = "error"


def get_all_events() -> list[str]:
    """Every event name defined above."""
    events = [WS_EVENTS.ERROR]
    for event_class in (AuthEvents, MotivationEvents):
        for attr_name in dir(event_class):
            if not attr_name.startswith("_"):
                events.append(getattr(event_class, attr_name))
    return events


def validate_event_type(event_type: str) -> bool:
    return event_type in get_all_events()


__all__ = [
    "WS_EVENTS",
    "AuthEvents",
    "MotivationEvents",
    "get_all_events",
    "validate_event_type",
]
