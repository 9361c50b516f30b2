"""Permission classes for Tasks API."""

from rest_framework.permissions import SAFE_METHODS
from rest_framework.permissions import BasePermission


def _is_elevated(user) -> bool:
    return bool(getattr(user, "is_elevated", False))


class TaskPermission(BasePermission):
    """Object-level rules for tasks.

    - read and comment: any authenticated user
    - update: elevated users, the creator, the assignee
    - delete: elevated users, the creator
    """

    message = "Not authorized to modify this task."

    def has_object_permission(self, request, view, obj) -> bool:
        if request.method in SAFE_METHODS:
            return True
        if getattr(view, "action", None) == "add_comment":
            return True
        user = request.user
        is_creator = obj.created_by_id == user.id
        if request.method == "DELETE":
            return is_creator or _is_elevated(user)
        is_assignee = obj.assigned_to_id is not None and obj.assigned_to_id == user.id
        return is_creator or is_assignee or _is_elevated(user)
