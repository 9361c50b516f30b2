from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from task_tracker.tasks.models import Comment
from task_tracker.tasks.models import Task

User = get_user_model()


class MemberRefSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class CommentSerializer(serializers.ModelSerializer):
    """Comment as it appears in REST responses and ``task_comment_added``."""

    author = serializers.PrimaryKeyRelatedField(read_only=True)
    authorName = serializers.CharField(source="author.name", read_only=True)  # noqa: N815
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)  # noqa: N815

    class Meta:
        model = Comment
        fields = ("id", "content", "author", "authorName", "createdAt")
        read_only_fields = ("id",)

    def validate_content(self, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Comment content is required."
            raise serializers.ValidationError(msg)
        return value


class TaskSerializer(serializers.ModelSerializer):
    """Full task representation.

    The same shape is returned by the CRUD endpoints and pushed verbatim on the
    realtime channel, so clients can upsert either one by ``id``.
    """

    assignedTo = serializers.PrimaryKeyRelatedField(  # noqa: N815
        source="assigned_to",
        queryset=User.objects.all(),
        allow_null=True,
        required=False,
    )
    assignedToUser = MemberRefSerializer(source="assigned_to", read_only=True)  # noqa: N815
    createdBy = serializers.PrimaryKeyRelatedField(source="created_by", read_only=True)  # noqa: N815
    dueDate = serializers.DateTimeField(  # noqa: N815
        source="due_date",
        allow_null=True,
        required=False,
    )
    comments = CommentSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)  # noqa: N815
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)  # noqa: N815

    class Meta:
        model = Task
        fields = (
            "id",
            "title",
            "description",
            "status",
            "priority",
            "assignedTo",
            "assignedToUser",
            "createdBy",
            "dueDate",
            "comments",
            "createdAt",
            "updatedAt",
        )
        read_only_fields = ("id",)
        extra_kwargs = {"description": {"allow_blank": True, "required": False}}

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Title is required."
            raise serializers.ValidationError(msg)
        return value
