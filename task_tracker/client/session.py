"""Live client: one Socket.IO connection plus the REST API feeding one cache.

Everything runs on a single asyncio loop. Blocking HTTP calls are moved off
the loop with ``sync_to_async`` and their results are applied back on it, so
the reconciler is only ever touched from the loop thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import socketio
from asgiref.sync import sync_to_async

from task_tracker.client.api import ClientConfig
from task_tracker.client.api import TaskAPIClient
from task_tracker.client.api import TaskAPIError
from task_tracker.client.reconciler import ClientStateReconciler
from task_tracker.realtime import schemas
from task_tracker.realtime.schemas import MalformedEvent

if TYPE_CHECKING:  # import for type checking only
    from task_tracker.client.cache import TaskCache

logger = logging.getLogger(__name__)


class TaskSyncClient:
    def __init__(
        self,
        cfg: ClientConfig,
        *,
        api: TaskAPIClient | None = None,
        reconciler: ClientStateReconciler | None = None,
        sio: socketio.AsyncClient | None = None,
    ) -> None:
        self.cfg = cfg
        self.api = api if api is not None else TaskAPIClient(cfg)
        self.reconciler = reconciler if reconciler is not None else ClientStateReconciler()
        self.sio = sio if sio is not None else socketio.AsyncClient(reconnection=True)
        self.connected = False
        self.auth_error: Any = None
        self._register_handlers()

    @property
    def cache(self) -> TaskCache:
        return self.reconciler.cache

    def _register_handlers(self) -> None:
        self.sio.on("connect", self._on_connect)
        self.sio.on("connect_error", self._on_connect_error)
        self.sio.on("disconnect", self._on_disconnect)
        for event in schemas.EVENT_NAMES:
            self.sio.on(event, self._event_handler(event))

    def _event_handler(self, event: str):
        async def handler(data: Any = None) -> None:
            self.reconciler.apply_event(event, data)

        return handler

    # Connection lifecycle ----------------------------------------------------

    async def connect(self) -> None:
        await self.sio.connect(
            self.cfg.base_url,
            auth={"token": self.cfg.token},
            socketio_path=self.cfg.socketio_path,
            transports=["websocket", "polling"],
        )

    async def disconnect(self) -> None:
        await self.sio.disconnect()

    async def wait(self) -> None:
        await self.sio.wait()

    async def _on_connect(self) -> None:
        self.connected = True
        self.auth_error = None
        logger.info("Connected to %s", self.cfg.base_url)
        # Events were missed while offline; only a full fetch makes the cache
        # trustworthy again. If it fails the cache stays stale until the next
        # successful refresh.
        try:
            await self.refresh()
        except (TaskAPIError, MalformedEvent):
            logger.exception("Full fetch after connect failed; cache is stale")

    async def _on_connect_error(self, data: Any = None) -> None:
        self.connected = False
        self.auth_error = data
        logger.error("Realtime connection refused: %s", data)

    async def _on_disconnect(self, reason: Any = None) -> None:
        self.connected = False
        logger.info("Disconnected (%s)", reason)
        self.reconciler.disconnected()

    # REST operations ---------------------------------------------------------

    async def refresh(self) -> None:
        tasks = await sync_to_async(self.api.list_tasks, thread_sensitive=False)()
        self.reconciler.apply_fetch(tasks)

    async def create_task(self, **fields: Any) -> schemas.Task:
        task = await sync_to_async(self.api.create_task, thread_sensitive=False)(**fields)
        self.reconciler.apply_task(task)
        return task

    async def update_task(self, task_id: int, **fields: Any) -> schemas.Task:
        task = await sync_to_async(self.api.update_task, thread_sensitive=False)(
            task_id, **fields
        )
        self.reconciler.apply_task(task)
        return task

    async def delete_task(self, task_id: int) -> None:
        await sync_to_async(self.api.delete_task, thread_sensitive=False)(task_id)
        self.reconciler.apply_deleted(task_id)

    async def add_comment(self, task_id: int, content: str) -> schemas.Comment:
        comment = await sync_to_async(self.api.add_comment, thread_sensitive=False)(
            task_id, content
        )
        self.reconciler.apply_comment(task_id, comment)
        return comment
