from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from typing import Any

from task_tracker.realtime import router
from task_tracker.realtime import schemas
from task_tracker.realtime.broadcaster import EventBroadcaster
from task_tracker.realtime.presence import PresenceTracker
from task_tracker.realtime.router import NotificationRouter
from task_tracker.realtime.router import TaskFacts
from task_tracker.realtime.sessions import SessionRegistry

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable

    from task_tracker.realtime.broadcaster import Transport
    from task_tracker.realtime.router import Notification

logger = logging.getLogger(__name__)


class RealtimeHub:
    """Process-scoped owner of connection, presence and delivery state.

    ``init()`` is called once the server starts and ``clear()`` on shutdown.
    Registry and presence changes in ``connect``/``disconnect`` are applied
    before the first await, so each one is atomic on the event loop. Presence
    emits go out under one lock, entered in mutation order, so every client
    sees a user's online and offline events in the order they happened.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        registry: SessionRegistry | None = None,
        presence: PresenceTracker | None = None,
    ) -> None:
        self.registry = registry if registry is not None else SessionRegistry()
        self.presence = presence if presence is not None else PresenceTracker()
        self.broadcaster = EventBroadcaster(transport)
        self.router = NotificationRouter(self.registry, self.broadcaster)
        self.started = False
        self._presence_lock = asyncio.Lock()

    def init(self) -> None:
        self.clear()
        self.started = True
        logger.info("Realtime hub started")

    def clear(self) -> None:
        self.registry.clear()
        self.presence.clear()
        # A fresh lock binds to whichever loop the server runs next.
        self._presence_lock = asyncio.Lock()
        self.started = False

    # Connections -----------------------------------------------------------

    async def connect(self, sid: str, user_id: int) -> tuple[int, ...]:
        """Register an authenticated connection and announce it.

        The new connection always receives the full online snapshot; the
        other connections hear about the user only when they come online.
        """

        connection = self.registry.bind(sid, user_id)
        change = self.presence.on_connect(connection.user_id)

        async with self._presence_lock:
            await self.broadcaster.send(sid, schemas.ONLINE_MEMBERS, list(change.online))
            if change.became_online:
                await self.broadcaster.member_connected(change.user_id, skip_sid=sid)
        return change.online

    async def disconnect(self, sid: str) -> None:
        user_id = self.registry.unbind(sid)
        if user_id is None:
            return
        change = self.presence.on_disconnect(user_id)
        if not change.became_offline:
            return
        async with self._presence_lock:
            await self.broadcaster.member_disconnected(
                change.user_id,
                change.last_active_at,
            )

    # Task events -----------------------------------------------------------

    async def task_created(self, task: dict[str, Any]) -> None:
        await self.broadcaster.task_created(task)
        await self._notify(lambda: router.for_created(TaskFacts.from_payload(task)))

    async def task_updated(
        self,
        task: dict[str, Any],
        previous: TaskFacts | None = None,
    ) -> None:
        await self.broadcaster.task_updated(task)
        await self._notify(
            lambda: router.for_updated(previous, TaskFacts.from_payload(task)),
        )

    async def task_deleted(self, task_id: int) -> None:
        await self.broadcaster.task_deleted(task_id)

    async def comment_added(self, task: dict[str, Any], comment: dict[str, Any]) -> None:
        await self.broadcaster.comment_added(task["id"], comment)
        await self._notify(
            lambda: router.for_comment(TaskFacts.from_payload(task), comment["author"]),
        )

    async def _notify(self, compute: Callable[[], list[Notification]]) -> None:
        try:
            notifications = compute()
        except Exception:
            logger.exception("Could not compute notification targets")
            return
        await self.router.deliver_all(notifications)


def get_hub() -> RealtimeHub:
    """Return the hub owned by the realtime app of this process."""

    from django.apps import apps  # noqa: PLC0415

    return apps.get_app_config("realtime").hub
