import random
from datetime import UTC
from datetime import datetime

from task_tracker.realtime.presence import PresenceTracker

FIXED = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_first_connection_brings_user_online():
    presence = PresenceTracker()
    change = presence.on_connect(1)
    assert change.became_online
    assert change.count == 1
    assert change.online == (1,)
    assert presence.is_online(1)


def test_second_connection_is_not_a_transition():
    presence = PresenceTracker()
    presence.on_connect(1)
    change = presence.on_connect(1)
    assert not change.became_online
    assert change.count == 2


def test_only_last_disconnect_takes_user_offline():
    presence = PresenceTracker(clock=lambda: FIXED)
    presence.on_connect(1)
    presence.on_connect(1)

    first = presence.on_disconnect(1)
    assert not first.became_offline
    assert presence.is_online(1)

    last = presence.on_disconnect(1)
    assert last.became_offline
    assert last.last_active_at == FIXED
    assert not presence.is_online(1)
    assert presence.last_active_at(1) == FIXED
    assert presence.online_users() == ()


def test_unmatched_disconnect_never_goes_negative(caplog):
    presence = PresenceTracker()
    change = presence.on_disconnect(5)
    assert change.count == 0
    assert not change.became_offline
    assert presence.count(5) == 0
    assert "no live connections" in caplog.text


def test_count_tracks_connections_under_random_interleavings():
    rng = random.Random(1234)
    presence = PresenceTracker()
    live: dict[int, int] = {}
    for _ in range(500):
        user_id = rng.randint(1, 4)
        if rng.random() < 0.55:  # noqa: PLR2004
            presence.on_connect(user_id)
            live[user_id] = live.get(user_id, 0) + 1
        else:
            presence.on_disconnect(user_id)
            live[user_id] = max(live.get(user_id, 0) - 1, 0)
        for uid in range(1, 5):
            assert presence.count(uid) == live.get(uid, 0)
            assert presence.count(uid) >= 0
            assert presence.is_online(uid) == (live.get(uid, 0) > 0)
    assert presence.online_users() == tuple(sorted(u for u, c in live.items() if c))


def test_reconnect_keeps_previous_last_active():
    presence = PresenceTracker(clock=lambda: FIXED)
    presence.on_connect(1)
    presence.on_disconnect(1)
    presence.on_connect(1)
    assert presence.is_online(1)
    assert presence.last_active_at(1) == FIXED
