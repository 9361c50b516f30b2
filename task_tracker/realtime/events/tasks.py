from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from asgiref.sync import async_to_sync

from task_tracker.realtime.hub import get_hub

if TYPE_CHECKING:  # import for type checking only
    from task_tracker.realtime.router import TaskFacts

logger = logging.getLogger(__name__)


def _publish(action: str, *args: Any) -> None:
    """Run a hub coroutine from sync Django code.

    The HTTP response of the mutating request never depends on this: every
    failure is logged and swallowed here.
    """

    try:
        hub = get_hub()
        async_to_sync(getattr(hub, action))(*args)
    except Exception:
        logger.exception("Realtime publish of %s failed", action)


def publish_task_created(task: dict[str, Any]) -> None:
    _publish("task_created", task)


def publish_task_updated(task: dict[str, Any], previous: TaskFacts | None) -> None:
    _publish("task_updated", task, previous)


def publish_task_deleted(task_id: int) -> None:
    _publish("task_deleted", task_id)


def publish_comment_added(task: dict[str, Any], comment: dict[str, Any]) -> None:
    _publish("comment_added", task, comment)
