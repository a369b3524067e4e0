"""
Page-specific handlers.

    pages/
    └── motivation/   # daily motivation feed (motivation.*)
"""

from .motivation import MOTIVATION_HANDLERS, feed_message

__all__ = ["MOTIVATION_HANDLERS", "feed_message"]
