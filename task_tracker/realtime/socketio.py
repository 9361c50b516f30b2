"""Socket.IO server for task tracker clients.

Client convention:
- URL base: ws://<host>:8000
- Socket.IO path: ``settings.REALTIME_SOCKETIO_PATH`` (default ``/ws/tasks/``)
- Auth: ``query.token`` or ``auth.token`` (JWT access token)

Handlers are registered against a :class:`RealtimeHub` passed in by the
realtime app, never looked up from module globals.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import socketio
from django.conf import settings

from task_tracker.realtime.auth import REASON_UNAUTHORIZED
from task_tracker.realtime.auth import HandshakeRejected
from task_tracker.realtime.auth import authenticate_token
from task_tracker.realtime.auth import extract_token

if TYPE_CHECKING:  # import for type checking only
    from task_tracker.realtime.hub import RealtimeHub

logger = logging.getLogger(__name__)


def create_server() -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=list(settings.REALTIME_CORS_ALLOWED_ORIGINS),
        logger=False,
        engineio_logger=False,
    )


def register_handlers(server: socketio.AsyncServer, hub: RealtimeHub) -> None:
    async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
        token = extract_token(environ, auth)
        if not token:
            raise socketio.exceptions.ConnectionRefusedError(REASON_UNAUTHORIZED)

        try:
            user_id = authenticate_token(token)
        except HandshakeRejected as exc:
            logger.info("Refused connection %s: %s", sid, exc.reason)
            raise socketio.exceptions.ConnectionRefusedError(exc.reason) from exc
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            msg = "server_error"
            raise socketio.exceptions.ConnectionRefusedError(msg) from exc

        await hub.connect(sid, user_id)

    async def disconnect(sid: str, reason: Any = None):
        logger.debug("Connection %s closed (%s)", sid, reason)
        await hub.disconnect(sid)

    server.on("connect", connect)
    server.on("disconnect", disconnect)


def create_asgi_app(
    server: socketio.AsyncServer,
    hub: RealtimeHub,
    other_asgi_app: Any,
) -> socketio.ASGIApp:
    """Mount Socket.IO above Django; the hub lives as long as the server."""

    return socketio.ASGIApp(
        server,
        other_asgi_app=other_asgi_app,
        socketio_path=settings.REALTIME_SOCKETIO_PATH,
        on_startup=hub.init,
        on_shutdown=hub.clear,
    )
