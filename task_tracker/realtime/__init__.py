"""Realtime infrastructure (Socket.IO, presence, task events, notifications).

The session registry, presence tracker, broadcaster and notification router
are plain objects owned by a :class:`~task_tracker.realtime.hub.RealtimeHub`.
Handlers receive the hub by injection, so tests can build independent hubs.
"""
