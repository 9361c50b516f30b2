import pytest

from task_tracker.realtime.sessions import SessionAlreadyBound
from task_tracker.realtime.sessions import SessionRegistry


def test_bind_and_lookup():
    registry = SessionRegistry()
    registry.bind("s1", 1)
    registry.bind("s2", 1)
    registry.bind("s3", 2)

    assert registry.user_for("s1") == 1
    assert registry.user_for("s3") == 2
    assert registry.connections_for(1) == frozenset({"s1", "s2"})
    assert len(registry) == 3
    assert "s2" in registry


def test_rebinding_a_live_connection_is_rejected():
    registry = SessionRegistry()
    registry.bind("s1", 1)
    with pytest.raises(SessionAlreadyBound):
        registry.bind("s1", 2)
    assert registry.user_for("s1") == 1


def test_unbind_forgets_the_connection():
    registry = SessionRegistry()
    registry.bind("s1", 1)
    registry.bind("s2", 1)

    assert registry.unbind("s1") == 1
    assert registry.user_for("s1") is None
    assert registry.connections_for(1) == frozenset({"s2"})

    assert registry.unbind("s2") == 1
    assert registry.connections_for(1) == frozenset()
    assert len(registry) == 0


def test_unbind_unknown_connection_is_a_noop():
    registry = SessionRegistry()
    assert registry.unbind("missing") is None


def test_sid_can_be_reused_after_unbind():
    registry = SessionRegistry()
    registry.bind("s1", 1)
    registry.unbind("s1")
    registry.bind("s1", 2)
    assert registry.user_for("s1") == 2
    assert registry.connections_for(1) == frozenset()


def test_user_ids_are_normalized_to_int():
    registry = SessionRegistry()
    registry.bind("s1", "7")
    assert registry.connections_for(7) == frozenset({"s1"})
    assert registry.user_for("s1") == 7


def test_clear():
    registry = SessionRegistry()
    registry.bind("s1", 1)
    registry.clear()
    assert len(registry) == 0
    assert registry.all_connections() == []
