"""
Daily motivation feed for the signed-in user.

Reads every post (newest first) and the user's favorites, keeps them in
memory, and applies favorite toggles optimistically before writing them
through to ``user_favorites``. A failed write undoes the local edit.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from supabase import PostgrestAPIError

from fitfeed.models import MotivationPost, User, UserFavorite
from fitfeed.session.store import UNEXPECTED_ERROR, SessionStore, backend_message

logger = logging.getLogger("fitfeed.feed")

POSTS_TABLE = "daily_motivation"
FAVORITES_TABLE = "user_favorites"

PLACEHOLDER_PREFIX = "local-"

TITLE = "Daily Motivation"
SUBTITLE = "Daily inspiration to keep you motivated on your fitness journey."
SIGN_IN_MESSAGE = "Please sign in to view motivational content."
EMPTY_ALL_MESSAGE = "No motivation posts available at the moment. Check back soon!"
EMPTY_FAVORITES_MESSAGE = (
    "You haven't favorited any posts yet. "
    'Browse the "All Posts" section and mark your favorites.'
)
SIGN_IN_REQUIRED = "Please sign in to manage favorites"


class FeedStatus(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    READY = "ready"


class FeedFilter(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"


class FeedView:
    def __init__(self, session: SessionStore, client: Any):
        self._session = session
        self._client = client

        self.posts: List[MotivationPost] = []
        self.favorites: List[UserFavorite] = []
        self.status = FeedStatus.LOADING
        self.filter = FeedFilter.ALL

        self._unmounted = False
        self._generation = 0
        self._remove_listener: Optional[Callable[[], None]] = None
        self._tasks: Set[asyncio.Task] = set()
        # post_id -> stored row (or None on failure) of an insert in flight
        self._inserts: Dict[str, "asyncio.Future[Optional[UserFavorite]]"] = {}
        self.on_change: Optional[Callable[["FeedView"], Any]] = None

    # ──────────────────────────────────────────
    # LIFECYCLE
    # ──────────────────────────────────────────

    async def mount(self) -> None:
        self._unmounted = False
        self._remove_listener = self._session.add_listener(self._on_identity_change)
        await self.fetch_data()

    def unmount(self) -> None:
        # In-flight fetches keep running; their results are dropped.
        self._unmounted = True
        self._generation += 1
        if self._remove_listener:
            self._remove_listener()
            self._remove_listener = None

    def _on_identity_change(self, user: Optional[User]) -> None:
        task = asyncio.get_running_loop().create_task(self._refetch())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refetch(self) -> None:
        await self.fetch_data()
        if self.on_change and not self._unmounted:
            result = self.on_change(self)
            if asyncio.iscoroutine(result):
                await result

    def _is_stale(self, generation: int) -> bool:
        return self._unmounted or generation != self._generation

    # ──────────────────────────────────────────
    # READS
    # ──────────────────────────────────────────

    async def fetch_data(self) -> None:
        self._generation += 1
        generation = self._generation
        user = self._session.user
        if user is None:
            self.posts = []
            self.favorites = []
            self.status = FeedStatus.UNAUTHENTICATED
            return

        self.posts = []
        self.favorites = []
        self.status = FeedStatus.LOADING
        try:
            try:
                posts_response = await (
                    self._client.table(POSTS_TABLE)
                    .select("*")
                    .order("post_date", desc=True)
                    .execute()
                )
            except PostgrestAPIError as e:
                logger.error("feed_posts status=error uid=%s error=%s", user.user_id, backend_message(e))
                return
            if self._is_stale(generation):
                return
            self.posts = [MotivationPost.model_validate(row) for row in posts_response.data or []]

            try:
                favorites_response = await (
                    self._client.table(FAVORITES_TABLE)
                    .select("*")
                    .eq("user_id", user.user_id)
                    .execute()
                )
            except PostgrestAPIError as e:
                logger.error("feed_favorites status=error uid=%s error=%s", user.user_id, backend_message(e))
                return
            if self._is_stale(generation):
                return
            self.favorites = [UserFavorite.model_validate(row) for row in favorites_response.data or []]

            logger.info(
                "feed_fetch status=ok uid=%s posts=%s favorites=%s",
                user.user_id, len(self.posts), len(self.favorites),
            )
        except Exception as e:
            logger.error("feed_fetch status=unexpected_error error=%s", repr(e), exc_info=True)
        finally:
            if not self._is_stale(generation):
                self.status = FeedStatus.READY

    # ──────────────────────────────────────────
    # FAVORITES
    # ──────────────────────────────────────────

    def is_favorited(self, post_id: str) -> bool:
        return any(fav.post_id == post_id for fav in self.favorites)

    async def toggle_favorite(self, post_id: str, is_favorited: bool) -> Optional[str]:
        """Apply the toggle locally, then persist it. Returns an error message or None."""
        user = self._session.user
        if user is None:
            return SIGN_IN_REQUIRED
        if is_favorited:
            return await self._add_favorite(user, post_id)
        return await self._remove_favorite(user, post_id)

    async def _add_favorite(self, user: User, post_id: str) -> Optional[str]:
        if self.is_favorited(post_id):
            return None

        placeholder = UserFavorite.placeholder(
            favorite_id=f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex}",
            user_id=user.user_id,
            post_id=post_id,
        )
        self.favorites = [*self.favorites, placeholder]

        inflight = asyncio.get_running_loop().create_future()
        self._inserts[post_id] = inflight
        persisted: Optional[UserFavorite] = None
        error = None
        try:
            response = await self._client.table(FAVORITES_TABLE).insert({
                "user_id": user.user_id,
                "post_id": post_id,
                "date_favorited": placeholder.date_favorited,
            }).execute()
            rows = response.data or []
            persisted = UserFavorite.model_validate(rows[0]) if rows else placeholder
        except PostgrestAPIError as e:
            error = backend_message(e)
        except Exception as e:
            logger.error("favorite_add status=unexpected_error post_id=%s error=%s", post_id, repr(e))
            error = UNEXPECTED_ERROR
        finally:
            if self._inserts.get(post_id) is inflight:
                del self._inserts[post_id]
            inflight.set_result(persisted)

        if error is not None:
            logger.warning("favorite_add status=rolled_back post_id=%s error=%s", post_id, error)
            self.favorites = [f for f in self.favorites if f.favorite_id != placeholder.favorite_id]
            return error

        self.favorites = [
            persisted if f.favorite_id == placeholder.favorite_id else f
            for f in self.favorites
        ]
        logger.info("favorite_add status=ok uid=%s post_id=%s", user.user_id, post_id)
        return None

    async def _remove_favorite(self, user: User, post_id: str) -> Optional[str]:
        removed = [f for f in self.favorites if f.post_id == post_id]
        if not removed:
            return None
        self.favorites = [f for f in self.favorites if f.post_id != post_id]

        inflight = self._inserts.get(post_id)
        if inflight is not None:
            # The row has to exist before the delete can remove it.
            persisted = await asyncio.shield(inflight)
            removed = [f for f in removed if not f.favorite_id.startswith(PLACEHOLDER_PREFIX)]
            if persisted is not None:
                removed.append(persisted)
            if not removed:
                logger.info("favorite_remove status=ok uid=%s post_id=%s stored=none", user.user_id, post_id)
                return None

        error = None
        try:
            await (
                self._client.table(FAVORITES_TABLE)
                .delete()
                .eq("user_id", user.user_id)
                .eq("post_id", post_id)
                .execute()
            )
        except PostgrestAPIError as e:
            error = backend_message(e)
        except Exception as e:
            logger.error("favorite_remove status=unexpected_error post_id=%s error=%s", post_id, repr(e))
            error = UNEXPECTED_ERROR

        if error is not None:
            logger.warning("favorite_remove status=rolled_back post_id=%s error=%s", post_id, error)
            self.favorites = [*self.favorites, *removed]
            return error

        logger.info("favorite_remove status=ok uid=%s post_id=%s", user.user_id, post_id)
        return None

    # ──────────────────────────────────────────
    # VIEW
    # ──────────────────────────────────────────

    def set_filter(self, value: str) -> None:
        self.filter = FeedFilter(value)

    @property
    def filtered_posts(self) -> List[MotivationPost]:
        if self.filter == FeedFilter.ALL:
            return list(self.posts)
        favorite_ids = {fav.post_id for fav in self.favorites}
        return [post for post in self.posts if post.post_id in favorite_ids]

    def render(self) -> Dict[str, Any]:
        if self.status == FeedStatus.LOADING:
            return {"status": self.status.value}

        if self.status == FeedStatus.UNAUTHENTICATED:
            return {
                "status": self.status.value,
                "title": TITLE,
                "message": SIGN_IN_MESSAGE,
                "action": {"label": "Sign In", "route": "/login"},
            }

        posts = self.filtered_posts
        empty_message = None
        if not posts:
            empty_message = EMPTY_ALL_MESSAGE if self.filter == FeedFilter.ALL else EMPTY_FAVORITES_MESSAGE

        return {
            "status": self.status.value,
            "title": TITLE,
            "subtitle": SUBTITLE,
            "filter": self.filter.value,
            "user_id": self._session.user.user_id if self._session.user else None,
            "posts": [
                {**post.to_payload(), "is_favorited": self.is_favorited(post.post_id)}
                for post in posts
            ],
            "empty_message": empty_message,
        }
