from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class PresenceChange:
    user_id: int
    count: int
    became_online: bool = False
    became_offline: bool = False
    online: tuple[int, ...] = ()
    last_active_at: datetime | None = None


@dataclass
class PresenceTracker:
    """Live connection count per user.

    A user is online iff their count is positive. Entries are removed when the
    count drops to zero; the moment of that drop is kept separately in
    ``last_active_at`` for display.
    """

    clock: Callable[[], datetime] = _utcnow
    _counts: dict[int, int] = field(default_factory=dict, init=False)
    _last_active: dict[int, datetime] = field(default_factory=dict, init=False)

    def on_connect(self, user_id: int) -> PresenceChange:
        user_id = int(user_id)
        count = self._counts.get(user_id, 0) + 1
        self._counts[user_id] = count
        became_online = count == 1
        if became_online:
            logger.info("User %s is online", user_id)
        return PresenceChange(
            user_id=user_id,
            count=count,
            became_online=became_online,
            online=self.online_users(),
        )

    def on_disconnect(self, user_id: int) -> PresenceChange:
        user_id = int(user_id)
        count = self._counts.get(user_id, 0)
        if count == 0:
            # Disconnect without a matching connect; nothing to undo.
            logger.warning("Disconnect for user %s with no live connections", user_id)
            return PresenceChange(user_id=user_id, count=0, online=self.online_users())
        count -= 1
        if count:
            self._counts[user_id] = count
            return PresenceChange(user_id=user_id, count=count, online=self.online_users())

        del self._counts[user_id]
        at = self.clock()
        self._last_active[user_id] = at
        logger.info("User %s is offline", user_id)
        return PresenceChange(
            user_id=user_id,
            count=0,
            became_offline=True,
            online=self.online_users(),
            last_active_at=at,
        )

    def count(self, user_id: int) -> int:
        return self._counts.get(int(user_id), 0)

    def is_online(self, user_id: int) -> bool:
        return self.count(user_id) > 0

    def online_users(self) -> tuple[int, ...]:
        return tuple(sorted(self._counts))

    def last_active_at(self, user_id: int) -> datetime | None:
        return self._last_active.get(int(user_id))

    def clear(self) -> None:
        self._counts.clear()
        self._last_active.clear()
