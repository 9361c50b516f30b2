"""Client-side task cache.

The cache is the union of the last full fetch and every change applied since,
keyed by task id with last-write-wins in arrival order. The filtered view is
never patched: it is recomputed from the whole cache after every change, so it
always equals ``{t in cache : filter(t)}`` whatever order changes arrived in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

    from task_tracker.realtime.schemas import Comment
    from task_tracker.realtime.schemas import Task

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class TaskFilter:
    """Equality filter; ``None`` on a field matches anything."""

    status: str | None = None
    priority: str | None = None
    assigned_to: int | None = None

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status.value != self.status:
            return False
        if self.priority is not None and task.priority.value != self.priority:
            return False
        return self.assigned_to is None or task.assigned_to == self.assigned_to

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.priority is None and self.assigned_to is None


class TaskCache:
    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._filter = TaskFilter()
        self._filtered: tuple[Task, ...] = ()
        self._current_id: int | None = None
        self.stale = True

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks.values())

    @property
    def filtered(self) -> tuple[Task, ...]:
        return self._filtered

    @property
    def filter(self) -> TaskFilter:
        return self._filter

    # Detail view -------------------------------------------------------------

    @property
    def current_task(self) -> Task | None:
        """The task open in the detail view, always the cached version."""

        if self._current_id is None:
            return None
        return self._tasks.get(self._current_id)

    @property
    def current_task_id(self) -> int | None:
        return self._current_id

    def open_task(self, task_id: int) -> Task | None:
        self._current_id = task_id
        return self.current_task

    def close_task(self) -> None:
        self._current_id = None

    # Mutations ---------------------------------------------------------------

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Apply a full fetch: entries missing from it are dropped."""

        self._tasks = {task.id: task for task in tasks}
        if self._current_id is not None and self._current_id not in self._tasks:
            self._current_id = None
        self.stale = False
        self._refilter()

    def upsert(self, task: Task) -> None:
        self._tasks[task.id] = task
        self._refilter()

    def remove(self, task_id: int) -> bool:
        removed = self._tasks.pop(task_id, None) is not None
        if self._current_id == task_id:
            self._current_id = None
        if removed:
            self._refilter()
        return removed

    def append_comment(self, task_id: int, comment: Comment) -> bool:
        """Append to a cached task; comments for unknown tasks are dropped.

        A comment already present (same id) is replaced rather than appended,
        so the REST echo and the pushed copy of one comment count once.
        """

        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("Dropping comment %s for uncached task %s", comment.id, task_id)
            return False
        comments = list(task.comments)
        for index, existing in enumerate(comments):
            if existing.id == comment.id:
                comments[index] = comment
                break
        else:
            comments.append(comment)
        self._tasks[task_id] = task.model_copy(update={"comments": tuple(comments)})
        self._refilter()
        return True

    def set_filter(
        self,
        *,
        status: str | None | object = _UNSET,
        priority: str | None | object = _UNSET,
        assigned_to: int | None | object = _UNSET,
    ) -> tuple[Task, ...]:
        """Change some filter fields, keeping the others as they are."""

        changes = {
            name: value
            for name, value in (
                ("status", status),
                ("priority", priority),
                ("assigned_to", assigned_to),
            )
            if value is not _UNSET
        }
        self._filter = replace(self._filter, **changes)
        self._refilter()
        return self._filtered

    def clear_filter(self) -> tuple[Task, ...]:
        self._filter = TaskFilter()
        self._refilter()
        return self._filtered

    def invalidate(self) -> None:
        """Mark the cache untrusted until the next full fetch."""

        self.stale = True

    def _refilter(self) -> None:
        self._filtered = tuple(t for t in self._tasks.values() if self._filter.matches(t))
