"""
Motivation Page Handlers
========================

``motivation.*`` WebSocket messages for the daily motivation feed.

Event Mapping:
    motivation.fetch            -> handle_fetch()
    motivation.toggle_favorite  -> handle_toggle_favorite()
    motivation.set_filter       -> handle_set_filter()

All of them answer with the rendered feed (``motivation.feed``) or a
``motivation.error`` carrying the reason and the feed as it now stands.
"""

import logging
from typing import Any, Dict

from fitfeed.feed import FeedFilter, FeedView
from fitfeed.ws_events import WS_EVENTS

logger = logging.getLogger("fitfeed.motivation.handlers")


def feed_message(feed: FeedView) -> Dict[str, Any]:
    return {"type": WS_EVENTS.MOTIVATION.FEED, "payload": feed.render()}


def _error(feed: FeedView, message: str, code: str) -> Dict[str, Any]:
    return {
        "type": WS_EVENTS.MOTIVATION.ERROR,
        "payload": {
            "success": False,
            "error": message,
            "code": code,
            "feed": feed.render(),
        },
    }


async def handle_fetch(feed: FeedView, payload: Dict[str, Any]) -> Dict[str, Any]:
    await feed.fetch_data()
    return feed_message(feed)


async def handle_toggle_favorite(feed: FeedView, payload: Dict[str, Any]) -> Dict[str, Any]:
    post_id = payload.get("post_id")
    if post_id is None or post_id == "":
        return _error(feed, "Missing post_id", "MISSING_POST_ID")
    is_favorited = payload.get("is_favorited")
    if not isinstance(is_favorited, bool):
        return _error(feed, "is_favorited must be true or false", "INVALID_ARGS")

    error = await feed.toggle_favorite(str(post_id), is_favorited)
    if error:
        logger.warning("[MOTIVATION] toggle_favorite failed post_id=%s error=%s", post_id, error)
        return _error(feed, error, "FAVORITE_FAILED")
    return feed_message(feed)


async def handle_set_filter(feed: FeedView, payload: Dict[str, Any]) -> Dict[str, Any]:
    value = payload.get("filter")
    try:
        feed.set_filter(value)
    except ValueError:
        allowed = ", ".join(f.value for f in FeedFilter)
        return _error(feed, f"Unknown filter {value!r} (expected one of: {allowed})", "INVALID_FILTER")
    return feed_message(feed)


MOTIVATION_HANDLERS = {
    WS_EVENTS.MOTIVATION.FETCH: handle_fetch,
    WS_EVENTS.MOTIVATION.TOGGLE_FAVORITE: handle_toggle_favorite,
    WS_EVENTS.MOTIVATION.SET_FILTER: handle_set_filter,
}
