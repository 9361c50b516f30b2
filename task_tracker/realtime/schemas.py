"""Wire schemas for the push channel.

Every server -> client event is one member of a closed tagged union keyed by
the Socket.IO event name. Anything that does not validate against the schema
of its kind (including unknown event names) is rejected with
:class:`MalformedEvent`.

This module does not import Django so the client package can share it.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

ONLINE_MEMBERS = "online_members"
MEMBER_CONNECTED = "member_connected"
MEMBER_DISCONNECTED = "member_disconnected"
TASK_CREATED = "task_created"
TASK_UPDATED = "task_updated"
TASK_DELETED = "task_deleted"
TASK_COMMENT_ADDED = "task_comment_added"
NOTIFICATION = "notification"

EVENT_NAMES = (
    ONLINE_MEMBERS,
    MEMBER_CONNECTED,
    MEMBER_DISCONNECTED,
    TASK_CREATED,
    TASK_UPDATED,
    TASK_DELETED,
    TASK_COMMENT_ADDED,
    NOTIFICATION,
)


class MalformedEvent(Exception):  # noqa: N818
    """Raised when a pushed payload does not match the schema of its kind."""

    def __init__(self, event: str, detail: str) -> None:
        super().__init__(f"{event}: {detail}")
        self.event = event
        self.detail = detail


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationKind(str, Enum):
    ASSIGNED = "assigned"
    UPDATED = "updated"
    COMPLETED = "completed"
    COMMENTED = "commented"


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MemberRef(WireModel):
    id: int
    name: str = ""


class Comment(WireModel):
    id: int
    content: str
    author: int
    author_name: str = ""
    created_at: datetime


class Task(WireModel):
    id: int
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: int | None = None
    assigned_to_user: MemberRef | None = None
    created_by: int
    due_date: datetime | None = None
    comments: tuple[Comment, ...] = ()
    created_at: datetime
    updated_at: datetime


class CommentAdded(WireModel):
    task_id: int
    comment: Comment


class MemberDisconnected(WireModel):
    user_id: int
    last_active_at: datetime | None = None


class Notification(WireModel):
    type: NotificationKind
    message: str
    task: int


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class OnlineMembersEvent(_Event):
    event: Literal["online_members"]
    data: tuple[int, ...]


class MemberConnectedEvent(_Event):
    event: Literal["member_connected"]
    data: int


class MemberDisconnectedEvent(_Event):
    event: Literal["member_disconnected"]
    data: MemberDisconnected


class TaskCreatedEvent(_Event):
    event: Literal["task_created"]
    data: Task


class TaskUpdatedEvent(_Event):
    event: Literal["task_updated"]
    data: Task


class TaskDeletedEvent(_Event):
    event: Literal["task_deleted"]
    data: int


class TaskCommentAddedEvent(_Event):
    event: Literal["task_comment_added"]
    data: CommentAdded


class NotificationEvent(_Event):
    event: Literal["notification"]
    data: Notification


ServerEvent = Annotated[
    OnlineMembersEvent
    | MemberConnectedEvent
    | MemberDisconnectedEvent
    | TaskCreatedEvent
    | TaskUpdatedEvent
    | TaskDeletedEvent
    | TaskCommentAddedEvent
    | NotificationEvent,
    Field(discriminator="event"),
]

_server_event_adapter: TypeAdapter[ServerEvent] = TypeAdapter(ServerEvent)
_tasks_adapter: TypeAdapter[list[Task]] = TypeAdapter(list[Task])


def parse_event(event: str, data: Any) -> ServerEvent:
    """Validate one pushed event against the schema of its kind."""

    if event not in EVENT_NAMES:
        raise MalformedEvent(event, "unknown event")
    try:
        return _server_event_adapter.validate_python({"event": event, "data": data})
    except ValidationError as exc:
        raise MalformedEvent(event, str(exc)) from exc


def parse_task(data: Any) -> Task:
    try:
        return Task.model_validate(data)
    except ValidationError as exc:
        raise MalformedEvent(TASK_UPDATED, str(exc)) from exc


def parse_tasks(data: Any) -> list[Task]:
    try:
        return _tasks_adapter.validate_python(data)
    except ValidationError as exc:
        raise MalformedEvent("tasks", str(exc)) from exc


def parse_comment(data: Any) -> Comment:
    try:
        return Comment.model_validate(data)
    except ValidationError as exc:
        raise MalformedEvent(TASK_COMMENT_ADDED, str(exc)) from exc
