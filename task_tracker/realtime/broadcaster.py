from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from task_tracker.realtime import schemas

if TYPE_CHECKING:  # import for type checking only
    from datetime import datetime

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The subset of ``socketio.AsyncServer`` the realtime layer emits through."""

    async def emit(
        self,
        event: str,
        data: Any = None,
        to: str | None = None,
        skip_sid: str | None = None,
    ) -> None: ...


class EventBroadcaster:
    """Fire-and-forget fan-out to every connected client.

    Nothing is queued or replayed: a client that connects later relies on its
    own full fetch. Transport errors are logged and never propagate.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    async def publish(
        self,
        event: str,
        data: Any,
        *,
        skip_sid: str | None = None,
    ) -> bool:
        try:
            await self.transport.emit(event, data, skip_sid=skip_sid)
        except Exception:
            logger.exception("Broadcast of %s failed", event)
            return False
        return True

    async def send(self, sid: str, event: str, data: Any) -> bool:
        """Emit to a single connection."""

        try:
            await self.transport.emit(event, data, to=sid)
        except Exception:
            logger.exception("Emit of %s to %s failed", event, sid)
            return False
        return True

    async def task_created(self, task: dict[str, Any]) -> bool:
        return await self.publish(schemas.TASK_CREATED, task)

    async def task_updated(self, task: dict[str, Any]) -> bool:
        return await self.publish(schemas.TASK_UPDATED, task)

    async def task_deleted(self, task_id: int) -> bool:
        return await self.publish(schemas.TASK_DELETED, int(task_id))

    async def comment_added(self, task_id: int, comment: dict[str, Any]) -> bool:
        payload = {"taskId": int(task_id), "comment": comment}
        return await self.publish(schemas.TASK_COMMENT_ADDED, payload)

    async def member_connected(self, user_id: int, *, skip_sid: str) -> bool:
        return await self.publish(
            schemas.MEMBER_CONNECTED,
            int(user_id),
            skip_sid=skip_sid,
        )

    async def member_disconnected(self, user_id: int, at: datetime | None) -> bool:
        payload = schemas.MemberDisconnected(user_id=user_id, last_active_at=at)
        return await self.publish(schemas.MEMBER_DISCONNECTED, payload.to_wire())
