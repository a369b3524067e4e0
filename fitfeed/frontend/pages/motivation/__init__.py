"""
Motivation Page Handlers
========================

Usage:
    from fitfeed.frontend.pages.motivation import MOTIVATION_HANDLERS, feed_message
"""

from .handlers import (
    MOTIVATION_HANDLERS,
    feed_message,
    handle_fetch,
    handle_set_filter,
    handle_toggle_favorite,
)

__all__ = [
    "MOTIVATION_HANDLERS",
    "feed_message",
    "handle_fetch",
    "handle_toggle_favorite",
    "handle_set_filter",
]
