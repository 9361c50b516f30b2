"""Targeted notifications.

Target computation is pure (``for_created``, ``for_updated``, ``for_comment``);
delivery resolves each target user to their live connections through the
session registry. Users without connections get nothing and nothing is kept
for later: delivery is at most once and best effort.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from task_tracker.realtime import schemas
from task_tracker.realtime.schemas import NotificationKind
from task_tracker.realtime.schemas import TaskStatus

if TYPE_CHECKING:  # import for type checking only
    from task_tracker.realtime.broadcaster import EventBroadcaster
    from task_tracker.realtime.sessions import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFacts:
    """The fields of a task that decide who gets notified."""

    task_id: int
    title: str
    status: str
    creator_id: int
    assignee_id: int | None = None

    @classmethod
    def from_payload(cls, task: dict[str, Any]) -> TaskFacts:
        assignee = task.get("assignedTo")
        return cls(
            task_id=int(task["id"]),
            title=str(task.get("title", "")),
            status=str(task.get("status", "")),
            creator_id=int(task["createdBy"]),
            assignee_id=int(assignee) if assignee is not None else None,
        )


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    task_id: int
    targets: frozenset[int]

    def payload(self) -> dict[str, Any]:
        return schemas.Notification(
            type=self.kind,
            message=self.message,
            task=self.task_id,
        ).to_wire()


def for_created(task: TaskFacts) -> list[Notification]:
    if task.assignee_id is None:
        return []
    return [
        Notification(
            kind=NotificationKind.ASSIGNED,
            message=f"You have been assigned a new task: {task.title}",
            task_id=task.task_id,
            targets=frozenset({task.assignee_id}),
        ),
    ]


def for_updated(previous: TaskFacts | None, current: TaskFacts) -> list[Notification]:
    """Notifications for an update, comparing against the pre-update state.

    Without a previous state nothing is known to have changed, so nothing is
    sent.
    """

    if previous is None:
        return []
    notifications: list[Notification] = []
    if (
        current.assignee_id is not None
        and current.assignee_id != previous.assignee_id
    ):
        notifications.append(
            Notification(
                kind=NotificationKind.ASSIGNED,
                message=f"You have been assigned a task: {current.title}",
                task_id=current.task_id,
                targets=frozenset({current.assignee_id}),
            ),
        )
    completed = TaskStatus.COMPLETED.value
    if current.status == completed and previous.status != completed:
        notifications.append(
            Notification(
                kind=NotificationKind.COMPLETED,
                message=f'Task "{current.title}" has been marked as completed',
                task_id=current.task_id,
                targets=frozenset({current.creator_id}),
            ),
        )
    return notifications


def comment_targets(task: TaskFacts, author_id: int) -> frozenset[int]:
    targets = {task.creator_id}
    if task.assignee_id is not None:
        targets.add(task.assignee_id)
    targets.discard(int(author_id))
    return frozenset(targets)


def for_comment(task: TaskFacts, author_id: int) -> list[Notification]:
    targets = comment_targets(task, author_id)
    if not targets:
        return []
    return [
        Notification(
            kind=NotificationKind.COMMENTED,
            message=f'New comment on task "{task.title}"',
            task_id=task.task_id,
            targets=targets,
        ),
    ]


class NotificationRouter:
    def __init__(self, registry: SessionRegistry, broadcaster: EventBroadcaster) -> None:
        self.registry = registry
        self.broadcaster = broadcaster

    async def deliver(self, notification: Notification) -> int:
        """Send to every live connection of every target; returns sends made."""

        payload = notification.payload()
        sent = 0
        for user_id in sorted(notification.targets):
            sids = self.registry.connections_for(user_id)
            if not sids:
                logger.debug(
                    "Dropping %s notification for offline user %s",
                    notification.kind.value,
                    user_id,
                )
                continue
            for sid in sorted(sids):
                if await self.broadcaster.send(sid, schemas.NOTIFICATION, payload):
                    sent += 1
        return sent

    async def deliver_all(self, notifications: list[Notification]) -> int:
        sent = 0
        for notification in notifications:
            sent += await self.deliver(notification)
        return sent
