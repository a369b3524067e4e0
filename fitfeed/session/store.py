"""
Session Store
=============

Single source of truth for "who is signed in", kept in step with the
backend auth subsystem.

One instance per connected client. Lifecycle:

    store = SessionStore(client)
    await store.start()      # subscribe + initial session check
    ...                      # login / admin_login / register / logout
    store.close()            # unsubscribe

Auth change notifications that arrive while the initial check is running
are buffered. Once the check is done, SIGNED_OUT events are replayed and
SIGNED_IN events are replayed only when their session is newer than the
one the check saw.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from supabase import AuthError, PostgrestAPIError

from fitfeed.models import AuthResult, SessionState, User

logger = logging.getLogger("fitfeed.session")

UNEXPECTED_ERROR = "An unexpected error occurred"
INVALID_ADMIN_CREDENTIALS = "Invalid admin credentials"
ALREADY_SIGNED_IN = "Sign out before signing in as administrator"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

USERS_TABLE = "users"

IdentityListener = Callable[[Optional[User]], None]


def backend_message(exc: Exception) -> str:
    """Message supplied by the backend, verbatim."""
    return getattr(exc, "message", None) or str(exc)


def _session_order(session: Any) -> int:
    return int(getattr(session, "expires_at", None) or 0)


class SessionStore:
    """Holds the signed-in User, the admin flag and the loading flag."""

    def __init__(self, client: Any):
        self._client = client
        self.user: Optional[User] = None
        self.is_admin: bool = False
        self.loading: bool = True

        self._subscription = None
        self._listeners: List[IdentityListener] = []

        # Buffered until the initial check is done, then replayed.
        self._initialized = False
        self._pending: List[Tuple[str, Any]] = []
        self._checked_session: Any = None
        # Held during admin_login / register and dropped afterwards; those
        # calls decide the identity themselves.
        self._holds = 0
        self._held: List[Tuple[str, Any]] = []

    # ──────────────────────────────────────────
    # LIFECYCLE
    # ──────────────────────────────────────────

    async def start(self) -> None:
        if self._subscription is not None:
            logger.warning("session_start status=skipped reason=already_started")
            return
        self._subscription = self._client.auth.on_auth_state_change(self._on_auth_state_change)
        await self.check_session()
        self._initialized = True
        self._replay_after_check()

    def close(self) -> None:
        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            except Exception as e:
                logger.error("session_unsubscribe status=error error=%s", repr(e))
            self._subscription = None
        self._listeners.clear()
        self._pending.clear()
        self._held.clear()

    @property
    def state(self) -> SessionState:
        if self.loading:
            return SessionState.LOADING
        if self.user is None:
            return SessionState.ANONYMOUS
        if self.is_admin:
            return SessionState.ADMIN_AUTHENTICATED
        return SessionState.AUTHENTICATED

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Call ``listener(user)`` on every identity change; returns the remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "user": self.user.model_dump() if self.user else None,
            "is_admin": self.is_admin,
            "loading": self.loading,
        }

    # ──────────────────────────────────────────
    # INITIAL CHECK
    # ──────────────────────────────────────────

    async def check_session(self) -> None:
        try:
            try:
                session = await self._client.auth.get_session()
            except AuthError as e:
                logger.error("session_check status=error error=%s", backend_message(e))
                return

            self._checked_session = session
            if not session:
                logger.info("session_check status=anonymous")
                return

            row = await self._fetch_profile(session.user.id)
            if row:
                self._set_identity(User(user_id=row["user_id"], email=row.get("email") or ""))
                logger.info("session_check status=authenticated uid=%s", row["user_id"])
            else:
                logger.info("session_check status=no_profile uid=%s", session.user.id)
        except Exception as e:
            logger.error("session_check status=unexpected_error error=%s", repr(e), exc_info=True)
        finally:
            self._release_loading()

    def _release_loading(self) -> None:
        self.loading = False

    async def _fetch_profile(self, user_id: str) -> Optional[dict]:
        response = await (
            self._client.table(USERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        # maybe_single() yields no response at all when nothing matched
        if response is None:
            return None
        return response.data or None

    # ──────────────────────────────────────────
    # OPERATIONS
    # ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> AuthResult:
        # User is populated by the SIGNED_IN notification, not here.
        try:
            await self._client.auth.sign_in_with_password({"email": email, "password": password})
            logger.info("login status=ok email=%s", email)
            return AuthResult()
        except AuthError as e:
            logger.warning("login status=rejected email=%s error=%s", email, backend_message(e))
            return AuthResult(error=backend_message(e))
        except Exception as e:
            logger.error("login status=unexpected_error email=%s error=%s", email, repr(e))
            return AuthResult(error=UNEXPECTED_ERROR)

    async def admin_login(self, email: str, password: str) -> AuthResult:
        """Sign in through the backend and require ``users.is_admin`` on the profile row."""
        if self.user is not None:
            return AuthResult(error=ALREADY_SIGNED_IN)

        self._hold()
        signed_in = False
        try:
            try:
                response = await self._client.auth.sign_in_with_password(
                    {"email": email, "password": password}
                )
            except AuthError as e:
                logger.warning("admin_login status=rejected email=%s error=%s", email, backend_message(e))
                return AuthResult(error=backend_message(e))

            signed_in = True
            auth_user = getattr(response, "user", None)
            row = await self._fetch_profile(auth_user.id) if auth_user else None
            if not row or not row.get("is_admin"):
                logger.warning("admin_login status=denied email=%s", email)
                await self._discard_backend_session()
                signed_in = False
                return AuthResult(error=INVALID_ADMIN_CREDENTIALS)

            self.is_admin = True
            self._set_identity(User(user_id=row["user_id"], email=row.get("email") or email))
            logger.info("admin_login status=ok uid=%s", row["user_id"])
            return AuthResult()
        except Exception as e:
            logger.error("admin_login status=unexpected_error email=%s error=%s", email, repr(e))
            if signed_in:
                await self._discard_backend_session()
            return AuthResult(error=UNEXPECTED_ERROR)
        finally:
            self._release_hold()

    async def register(self, email: str, password: str) -> AuthResult:
        # sign_up emits SIGNED_IN when a session is issued; the user is only
        # set once the profile row exists.
        self._hold()
        signed_up = False
        try:
            try:
                response = await self._client.auth.sign_up({"email": email, "password": password})
            except AuthError as e:
                logger.warning("register status=rejected email=%s error=%s", email, backend_message(e))
                return AuthResult(error=backend_message(e))

            auth_user = getattr(response, "user", None)
            if auth_user is None:
                logger.info("register status=pending_confirmation email=%s", email)
                return AuthResult()

            signed_up = True
            try:
                await self._client.table(USERS_TABLE).insert({
                    "user_id": auth_user.id,
                    "email": email,
                    "registration_date": datetime.now(timezone.utc).isoformat(),
                }).execute()
            except PostgrestAPIError as e:
                logger.error("register_profile status=error uid=%s error=%s", auth_user.id, backend_message(e))
                signed_up = False
                await self._discard_backend_session()
                return AuthResult(error=backend_message(e))

            self._set_identity(User(user_id=auth_user.id, email=email))
            logger.info("register status=ok uid=%s", auth_user.id)
            return AuthResult()
        except Exception as e:
            logger.error("register status=unexpected_error email=%s error=%s", email, repr(e))
            if signed_up:
                await self._discard_backend_session()
            return AuthResult(error=UNEXPECTED_ERROR)
        finally:
            self._release_hold()

    async def logout(self) -> AuthResult:
        result = AuthResult()
        try:
            await self._client.auth.sign_out()
        except AuthError as e:
            logger.error("logout status=backend_error error=%s", backend_message(e))
            result = AuthResult(error=backend_message(e))
        except Exception as e:
            logger.error("logout status=unexpected_error error=%s", repr(e))
            result = AuthResult(error=UNEXPECTED_ERROR)
        finally:
            self.is_admin = False
            self._set_identity(None)
        return result

    async def _discard_backend_session(self) -> None:
        try:
            await self._client.auth.sign_out()
        except Exception as e:
            logger.error("discard_session status=error error=%s", repr(e))

    # ──────────────────────────────────────────
    # NOTIFICATIONS
    # ──────────────────────────────────────────

    def _hold(self) -> None:
        self._holds += 1

    def _release_hold(self) -> None:
        self._holds -= 1
        if not self._holds:
            if self._held:
                logger.debug("session_event status=dropped count=%s", len(self._held))
            self._held.clear()

    def _on_auth_state_change(self, event: str, session: Any) -> None:
        if self._holds:
            self._held.append((event, session))
            return
        if not self._initialized:
            self._pending.append((event, session))
            return
        self._apply_event(event, session)

    def _apply_event(self, event: str, session: Any) -> None:
        if event == SIGNED_IN and session:
            user = session.user
            self._set_identity(User(user_id=user.id, email=user.email or ""))
        elif event == SIGNED_OUT:
            self.is_admin = False
            self._set_identity(None)

    def _replay_after_check(self) -> None:
        baseline = _session_order(self._checked_session) if self._checked_session else None
        pending, self._pending = self._pending, []
        for event, session in pending:
            if event == SIGNED_IN and session and baseline is not None:
                if _session_order(session) <= baseline:
                    logger.debug("session_event status=stale event=%s", event)
                    continue
            self._apply_event(event, session)

    def _set_identity(self, user: Optional[User]) -> None:
        if user == self.user:
            return
        self.user = user
        for listener in list(self._listeners):
            try:
                listener(user)
            except Exception as e:
                logger.error("session_listener status=error error=%s", repr(e))
