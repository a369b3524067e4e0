"""
Daily motivation feed.

Usage:
    from fitfeed.feed import FeedView, FeedFilter, FeedStatus
"""

from .view import (
    FeedFilter,
    FeedStatus,
    FeedView,
)

__all__ = [
    "FeedView",
    "FeedFilter",
    "FeedStatus",
]
