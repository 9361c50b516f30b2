from __future__ import annotations

import logging
from collections import deque
from datetime import UTC
from datetime import datetime
from typing import TYPE_CHECKING
from typing import Any

from task_tracker.client.cache import TaskCache
from task_tracker.realtime import schemas
from task_tracker.realtime.schemas import MalformedEvent

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 50


class ClientStateReconciler:
    """Single authoritative client state fed by REST results and pushed events.

    REST results and pushed events go through the same idempotent operations
    keyed by id, so it does not matter whether the echo of a local mutation
    arrives before the HTTP response, after it, or not at all.
    """

    def __init__(
        self,
        cache: TaskCache | None = None,
        *,
        on_notification: Callable[[schemas.Notification], Any] | None = None,
    ) -> None:
        self.cache = cache if cache is not None else TaskCache()
        self.online: set[int] = set()
        self.last_active: dict[int, datetime] = {}
        self.notifications: deque[schemas.Notification] = deque(maxlen=MAX_NOTIFICATIONS)
        self.on_notification = on_notification
        self.dropped = 0

    # Pushed events -----------------------------------------------------------

    def apply_event(self, event: str, data: Any) -> bool:
        """Validate and apply one pushed event; malformed ones are dropped."""

        try:
            parsed = schemas.parse_event(event, data)
        except MalformedEvent as exc:
            self.dropped += 1
            logger.warning("Dropping malformed %s event: %s", exc.event, exc.detail)
            return False
        self._dispatch(parsed)
        return True

    def _dispatch(self, parsed: schemas.ServerEvent) -> None:
        data = parsed.data
        if isinstance(parsed, schemas.OnlineMembersEvent):
            self.online = set(data)
        elif isinstance(parsed, schemas.MemberConnectedEvent):
            self.online.add(data)
        elif isinstance(parsed, schemas.MemberDisconnectedEvent):
            self.online.discard(data.user_id)
            self.last_active[data.user_id] = data.last_active_at or datetime.now(tz=UTC)
        elif isinstance(parsed, (schemas.TaskCreatedEvent, schemas.TaskUpdatedEvent)):
            self.cache.upsert(data)
        elif isinstance(parsed, schemas.TaskDeletedEvent):
            self.cache.remove(data)
        elif isinstance(parsed, schemas.TaskCommentAddedEvent):
            self.cache.append_comment(data.task_id, data.comment)
        elif isinstance(parsed, schemas.NotificationEvent):
            self._notify(data)

    def _notify(self, notification: schemas.Notification) -> None:
        self.notifications.append(notification)
        if self.on_notification is None:
            return
        try:
            self.on_notification(notification)
        except Exception:
            logger.exception("Notification callback failed")

    # REST results ------------------------------------------------------------

    def apply_fetch(self, tasks: Iterable[schemas.Task]) -> None:
        self.cache.replace_all(tasks)

    def apply_task(self, task: schemas.Task) -> None:
        """Apply a created/updated task returned by the API (or optimistic)."""

        self.cache.upsert(task)

    def apply_deleted(self, task_id: int) -> None:
        self.cache.remove(task_id)

    def apply_comment(self, task_id: int, comment: schemas.Comment) -> None:
        self.cache.append_comment(task_id, comment)

    # Connection lifecycle ----------------------------------------------------

    def disconnected(self) -> None:
        """Stop trusting the cache and presence until the next full fetch."""

        self.cache.invalidate()
        self.online.clear()

    def is_online(self, user_id: int) -> bool:
        return user_id in self.online
