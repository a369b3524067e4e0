from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from typing import Any, Dict, Optional
import asyncio
import json as _json
import logging
import time

from .config import get_settings
from .feed import FeedView
from .frontend import AUTH_HANDLERS, MOTIVATION_HANDLERS, feed_message
from .logging_setup import configure_logging
from .session import SessionStore
from .supabase_client import BackendNotConfiguredError, create_backend_client
from .ws_events import WS_EVENTS, validate_event_type

configure_logging()
logger = logging.getLogger("fitfeed.app")

app = FastAPI(title="fitfeed")

START_TIME = time.time()

settings = get_settings()
VERSION = settings.service_version
logger.info("service_start version=%s backend_configured=%s", VERSION, settings.backend_configured)


@app.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "version": VERSION,
        "backend_configured": get_settings().backend_configured,
        "connections": len(_connections),
        "uptime_s": int(time.time() - START_TIME),
    }


@app.get("/version")
def version():
    return {"version": VERSION}


def _error(message: str, code: str) -> Dict[str, Any]:
    return {"type": WS_EVENTS.ERROR, "payload": {"success": False, "error": message, "code": code}}


class ClientConnection:
    """Session Store + Feed View bound to one WebSocket for its whole lifetime."""

    def __init__(self, ws: WebSocket, client: Any):
        self.ws = ws
        self.store = SessionStore(client)
        self.feed = FeedView(self.store, client)
        self.feed.on_change = self._push_identity_change
        self._send_lock = asyncio.Lock()

    async def open(self) -> None:
        await self.store.start()
        await self.feed.mount()
        await self.send({"type": WS_EVENTS.AUTH.SESSION_STATE, "payload": self.store.snapshot()})
        await self.send(feed_message(self.feed))

    def close(self) -> None:
        self.feed.unmount()
        self.store.close()

    async def send(self, message: Dict[str, Any]) -> None:
        async with self._send_lock:
            await self.ws.send_text(_json.dumps(message))

    async def _push_identity_change(self, feed: FeedView) -> None:
        try:
            await self.send({"type": WS_EVENTS.AUTH.SESSION_STATE, "payload": self.store.snapshot()})
            await self.send(feed_message(feed))
        except Exception as e:
            logger.error("ws_push status=error error=%s", repr(e))

    async def dispatch(self, raw: str) -> Dict[str, Any]:
        try:
            message = _json.loads(raw)
        except ValueError:
            return _error("Message is not valid JSON", "INVALID_MESSAGE")
        if not isinstance(message, dict) or not isinstance(message.get("type"), str):
            return _error("Message must be an object with a string 'type'", "INVALID_MESSAGE")

        msg_type = message["type"]
        if not validate_event_type(msg_type):
            logger.warning("ws_dispatch code=UNKNOWN_EVENT type=%s", msg_type)
            return _error(f"Unknown event type: {msg_type}", "UNKNOWN_EVENT")
        payload = message.get("payload") or {}
        if not isinstance(payload, dict):
            return _error("'payload' must be an object", "INVALID_MESSAGE")

        t0 = time.time()
        try:
            if msg_type in AUTH_HANDLERS:
                response = await AUTH_HANDLERS[msg_type](self.store, payload)
            elif msg_type in MOTIVATION_HANDLERS:
                response = await MOTIVATION_HANDLERS[msg_type](self.feed, payload)
            else:
                # server -> client only
                logger.warning("ws_dispatch code=OUTBOUND_ONLY type=%s", msg_type)
                return _error(f"Event type is sent by the server only: {msg_type}", "OUTBOUND_ONLY")
        except Exception as e:
            logger.error("ws_dispatch code=INTERNAL type=%s error=%s", msg_type, repr(e), exc_info=True)
            return _error("Internal error", "INTERNAL")

        dt_ms = int((time.time() - t0) * 1000)
        logger.info("ws_dispatch type=%s reply=%s dt_ms=%s", msg_type, response.get("type"), dt_ms)
        return response


_connections: set[ClientConnection] = set()


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    conn: Optional[ClientConnection] = None
    try:
        try:
            client = await create_backend_client()
        except BackendNotConfiguredError as e:
            logger.error("ws_open status=error error=%s", e)
            await ws.send_text(_json.dumps(_error(str(e), "BACKEND_NOT_CONFIGURED")))
            await ws.close(code=1011)
            return

        conn = ClientConnection(ws, client)
        _connections.add(conn)
        await conn.open()
        logger.info("ws_open status=ok state=%s connections=%s", conn.store.state.value, len(_connections))

        while True:
            raw = await ws.receive_text()
            await conn.send(await conn.dispatch(raw))
    except WebSocketDisconnect as e:
        logger.info("ws_disconnect code=%s", getattr(e, "code", None))
    except Exception as e:
        logger.error("ws_error error=%s", repr(e))
    finally:
        if conn is not None:
            conn.close()
            _connections.discard(conn)
