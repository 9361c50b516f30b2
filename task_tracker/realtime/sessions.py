"""Connection -> user bindings and the per-user addressing table."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class SessionAlreadyBound(Exception):  # noqa: N818
    """Raised when a live connection is bound a second time."""


@dataclass(frozen=True)
class Connection:
    sid: str
    user_id: int


class SessionRegistry:
    """Maps Socket.IO session ids to the user authenticated at handshake.

    A connection's user never changes: it is bound once and forgotten on
    disconnect. The reverse table (user id -> session ids) is what addressed
    delivery uses instead of transport rooms.
    """

    def __init__(self) -> None:
        self._by_sid: dict[str, Connection] = {}
        self._by_user: defaultdict[int, set[str]] = defaultdict(set)

    def __len__(self) -> int:
        return len(self._by_sid)

    def __contains__(self, sid: object) -> bool:
        return sid in self._by_sid

    def bind(self, sid: str, user_id: int) -> Connection:
        if sid in self._by_sid:
            msg = f"connection {sid} is already bound"
            raise SessionAlreadyBound(msg)
        connection = Connection(sid=sid, user_id=int(user_id))
        self._by_sid[sid] = connection
        self._by_user[connection.user_id].add(sid)
        logger.debug("Bound connection %s to user %s", sid, user_id)
        return connection

    def unbind(self, sid: str) -> int | None:
        connection = self._by_sid.pop(sid, None)
        if connection is None:
            return None
        sids = self._by_user.get(connection.user_id)
        if sids is not None:
            sids.discard(sid)
            if not sids:
                del self._by_user[connection.user_id]
        logger.debug("Unbound connection %s (user %s)", sid, connection.user_id)
        return connection.user_id

    def user_for(self, sid: str) -> int | None:
        connection = self._by_sid.get(sid)
        return connection.user_id if connection else None

    def connections_for(self, user_id: int) -> frozenset[str]:
        return frozenset(self._by_user.get(int(user_id), ()))

    def all_connections(self) -> list[Connection]:
        return list(self._by_sid.values())

    def clear(self) -> None:
        self._by_sid.clear()
        self._by_user.clear()
