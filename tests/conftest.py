"""
Shared fixtures: an in-memory stand-in for the backend client.

FakeBackend mimics the parts of the async Supabase client we touch:
``auth.*`` coroutines, ``auth.on_auth_state_change`` and the fluent
``table(...).select/insert/delete/eq/order/maybe_single().execute()`` chain.
"""

import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from supabase import AuthError, PostgrestAPIError


class FakeAuthError(AuthError):
    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message


class FakeAPIError(PostgrestAPIError):
    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message
        self.code = None
        self.hint = None
        self.details = None


def make_session(user_id: str = "user-1", email: str = "runner@example.com", expires_at: int = 1000):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        access_token=f"token-{user_id}-{expires_at}",
        expires_at=expires_at,
    )


class FakeQuery:
    def __init__(self, backend: "FakeBackend", table: str):
        self.backend = backend
        self.table = table
        self.op = "select"
        self.filters: List[Tuple[str, Any]] = []
        self.ordering: Optional[Tuple[str, bool]] = None
        self.payload: Optional[Dict[str, Any]] = None
        self.single = False

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, row: Dict[str, Any]):
        self.op = "insert"
        self.payload = row
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.ordering = (column, desc)
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    async def execute(self):
        self.backend.calls.append(self)
        gate = self.backend.gates.get((self.table, self.op))
        if gate is not None:
            await gate.wait()
        error = self.backend.errors.get((self.table, self.op))
        if error is not None:
            raise error

        rows = self.backend.tables.setdefault(self.table, [])
        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.ordering:
                column, desc = self.ordering
                found.sort(key=lambda r: r.get(column), reverse=desc)
            if self.single:
                return SimpleNamespace(data=found[0]) if found else None
            return SimpleNamespace(data=found)
        if self.op == "insert":
            row = dict(self.payload)
            if self.table == "user_favorites" and "favorite_id" not in row:
                self.backend.sequence += 1
                row["favorite_id"] = f"fav-{self.backend.sequence}"
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        removed = [r for r in rows if self._matches(r)]
        self.backend.tables[self.table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=removed)


class FakeBackend:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.errors: Dict[Tuple[str, str], Exception] = {}
        self.gates: Dict[Tuple[str, str], asyncio.Event] = {}
        self.calls: List[FakeQuery] = []
        self.sequence = 0
        self.callbacks = []

        self.subscription = MagicMock()
        self.auth = MagicMock()
        self.auth.get_session = AsyncMock(return_value=None)
        self.auth.sign_in_with_password = AsyncMock()
        self.auth.sign_up = AsyncMock()
        self.auth.sign_out = AsyncMock(return_value=None)
        self.auth.on_auth_state_change = MagicMock(side_effect=self._subscribe)

    def _subscribe(self, callback):
        self.callbacks.append(callback)
        return self.subscription

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def emit(self, event: str, session: Any = None) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    def calls_for(self, table: str, op: Optional[str] = None) -> List[FakeQuery]:
        return [q for q in self.calls if q.table == table and (op is None or q.op == op)]

    def sign_in_emits(self, session) -> None:
        """Make sign_in_with_password behave like the real client: SIGNED_IN fires before it returns."""
        async def _sign_in(credentials):
            self.emit("SIGNED_IN", session)
            return SimpleNamespace(user=session.user, session=session)

        self.auth.sign_in_with_password.side_effect = _sign_in

    def sign_up_emits(self, session) -> None:
        """sign_up issues a session (no email confirmation) and emits SIGNED_IN before returning."""
        async def _sign_up(credentials):
            self.emit("SIGNED_IN", session)
            return SimpleNamespace(user=session.user, session=session)

        self.auth.sign_up.side_effect = _sign_up

    def sign_out_emits(self) -> None:
        async def _sign_out():
            self.emit("SIGNED_OUT", None)

        self.auth.sign_out.side_effect = _sign_out


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def posts():
    return [
        {"post_id": "A", "post_date": "2026-10-03", "title": "Push", "content": "One more rep."},
        {"post_id": "B", "post_date": "2026-10-02", "title": "Rest", "content": "Recovery is training."},
        {"post_id": "C", "post_date": "2026-10-01", "title": "Start", "content": "Show up."},
    ]


@pytest.fixture
def seeded_backend(backend, posts):
    backend.tables["users"] = [{"user_id": "user-1", "email": "runner@example.com"}]
    # stored out of order on purpose; reads must come back newest first
    backend.tables["daily_motivation"] = [posts[2], posts[0], posts[1]]
    backend.tables["user_favorites"] = [
        {"favorite_id": "fav-b", "user_id": "user-1", "post_id": "B", "date_favorited": "2026-10-02T08:00:00"},
        {"favorite_id": "fav-other", "user_id": "user-2", "post_id": "A", "date_favorited": "2026-10-02T09:00:00"},
    ]
    return backend
