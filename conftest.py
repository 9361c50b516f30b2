from __future__ import annotations

from dataclasses import dataclass

import pytest
from asgiref.sync import async_to_sync
from django.apps import apps
from rest_framework.test import APIClient

from task_tracker.realtime.hub import RealtimeHub
from tests.factories import create_user_with_role
from tests.fakes import FakeTransport
from tests.fakes import make_hub


@dataclass
class Realtime:
    hub: RealtimeHub
    transport: FakeTransport

    def connect(self, sid: str, user) -> None:
        async_to_sync(self.hub.connect)(sid, getattr(user, "pk", user))

    def disconnect(self, sid: str) -> None:
        async_to_sync(self.hub.disconnect)(sid)

    def received(self, sid: str):
        return self.transport.received(sid)


@pytest.fixture
def realtime(monkeypatch) -> Realtime:
    """A fresh hub installed as this process's realtime hub."""

    hub, transport = make_hub()
    monkeypatch.setattr(apps.get_app_config("realtime"), "hub", hub)
    return Realtime(hub=hub, transport=transport)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def alice(db):
    return create_user_with_role("alice", first_name="Alice", last_name="Adams")


@pytest.fixture
def bob(db):
    return create_user_with_role("bob", first_name="Bob", last_name="Brown")


@pytest.fixture
def carol(db):
    return create_user_with_role("carol", first_name="Carol", last_name="Clark")


@pytest.fixture
def manager(db):
    return create_user_with_role("mgr", groups=["Manager"])
