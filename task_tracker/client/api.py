"""Minimal REST client for the task tracker API; no external deps."""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from task_tracker.realtime import schemas

logger = logging.getLogger(__name__)


class TaskAPIError(Exception):
    """Raised for non-2xx responses and unreachable servers."""

    def __init__(self, status: int | None, detail: str) -> None:
        super().__init__(f"{status}: {detail}" if status else detail)
        self.status = status
        self.detail = detail


@dataclass
class ClientConfig:
    base_url: str = "http://localhost:8000"
    api_prefix: str = "/api/v1"
    socketio_path: str = "ws/tasks"
    token: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> ClientConfig:
        return cls(
            base_url=os.environ.get("TASK_TRACKER_URL", cls.base_url),
            socketio_path=os.environ.get("TASK_TRACKER_SOCKETIO_PATH", cls.socketio_path),
            token=os.environ.get("TASK_TRACKER_TOKEN"),
            timeout=float(os.environ.get("TASK_TRACKER_TIMEOUT", cls.timeout)),
        )


class TaskAPIClient:
    """Task CRUD over HTTP. Responses are validated into wire models."""

    def __init__(self, cfg: ClientConfig):
        self.cfg = cfg

    def _url(self, path: str) -> str:
        return f"{self.cfg.base_url.rstrip('/')}{self.cfg.api_prefix}/{path.lstrip('/')}"

    def request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        headers = {"Accept": "application/json"}
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        if self.cfg.token:
            headers["Authorization"] = f"Bearer {self.cfg.token}"
        req = urllib.request.Request(  # noqa: S310 - base URL by config
            self._url(path),
            data=data,
            headers=headers,
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.cfg.timeout) as resp:  # noqa: S310 - base URL by config
                raw = resp.read()
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", "ignore")
            logger.warning("%s %s failed with %s: %s", method, path, e.code, detail)
            raise TaskAPIError(e.code, detail) from e
        except urllib.error.URLError as e:
            raise TaskAPIError(None, str(e.reason)) from e
        if not raw:
            return None
        return json.loads(raw.decode("utf-8"))

    def list_tasks(self) -> list[schemas.Task]:
        return schemas.parse_tasks(self.request("GET", "tasks/"))

    def get_task(self, task_id: int) -> schemas.Task:
        return schemas.parse_task(self.request("GET", f"tasks/{task_id}/"))

    def create_task(self, **fields: Any) -> schemas.Task:
        return schemas.parse_task(self.request("POST", "tasks/", fields))

    def update_task(self, task_id: int, **fields: Any) -> schemas.Task:
        return schemas.parse_task(self.request("PATCH", f"tasks/{task_id}/", fields))

    def delete_task(self, task_id: int) -> None:
        self.request("DELETE", f"tasks/{task_id}/")

    def add_comment(self, task_id: int, content: str) -> schemas.Comment:
        data = self.request("POST", f"tasks/{task_id}/comments/", {"content": content})
        return schemas.parse_comment(data)

    def list_members(self) -> list[dict[str, Any]]:
        return self.request("GET", "users/") or []
