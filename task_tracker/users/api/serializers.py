from rest_framework import serializers

from task_tracker.users.models import ROLE_GROUPS
from task_tracker.users.models import User


class UserSerializer(serializers.ModelSerializer):
    """Team member with live presence.

    Presence comes from the realtime hub passed in the serializer context as
    ``presence``; without it every member reads as offline.
    """

    groups = serializers.SlugRelatedField(
        many=True,
        read_only=True,
        slug_field="name",
    )
    role = serializers.CharField(read_only=True)
    isOnline = serializers.SerializerMethodField()  # noqa: N815
    lastActiveAt = serializers.SerializerMethodField()  # noqa: N815

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "name",
            "email",
            "avatar",
            "groups",
            "role",
            "isOnline",
            "lastActiveAt",
        ]
        read_only_fields = ["id", "username", "name", "email", "groups"]

    def _presence(self):
        return self.context.get("presence")

    def get_isOnline(self, obj: User) -> bool:  # noqa: N802
        presence = self._presence()
        return bool(presence is not None and presence.is_online(obj.pk))

    def get_lastActiveAt(self, obj: User) -> str | None:  # noqa: N802
        presence = self._presence()
        if presence is None:
            return None
        at = presence.last_active_at(obj.pk)
        return at.isoformat() if at else None


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=sorted(ROLE_GROUPS))
