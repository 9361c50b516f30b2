"""Python client for the task tracker.

``cache`` and ``reconciler`` hold the local state and have no I/O; ``api``
talks REST and ``session`` keeps a live Socket.IO connection. None of these
modules import Django.
"""
