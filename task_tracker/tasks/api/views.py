from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from task_tracker.tasks.api.filters import TaskFilter
from task_tracker.tasks.api.permissions import TaskPermission
from task_tracker.tasks.api.serializers import CommentSerializer
from task_tracker.tasks.api.serializers import TaskSerializer
from task_tracker.tasks.models import Task

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(tags=["Tasks"]),
    retrieve=extend_schema(tags=["Tasks"]),
    create=extend_schema(tags=["Tasks"]),
    update=extend_schema(tags=["Tasks"]),
    partial_update=extend_schema(tags=["Tasks"]),
    destroy=extend_schema(tags=["Tasks"]),
)
class TaskViewSet(viewsets.ModelViewSet):
    """Task CRUD.

    Every successful mutation is republished to connected clients by the
    task signals once the transaction commits; nothing here waits on it.
    """

    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated, TaskPermission]
    filterset_class = TaskFilter
    # Clients replace their whole cache from this list, so it is never paginated.
    pagination_class = None

    def get_queryset(self):
        return Task.objects.select_related("assigned_to", "created_by").prefetch_related(
            "comments__author"
        )

    def perform_create(self, serializer):
        task = serializer.save(created_by=self.request.user)
        logger.info("Task %s created by user %s", task.pk, self.request.user.pk)

    def perform_destroy(self, instance):
        logger.info("Task %s deleted by user %s", instance.pk, self.request.user.pk)
        instance.delete()

    @extend_schema(
        tags=["Tasks"],
        request=CommentSerializer,
        responses={201: CommentSerializer},
    )
    @action(detail=True, methods=["post"], url_path="comments")
    def add_comment(self, request, pk=None):
        task = self.get_object()
        serializer = CommentSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save(task=task, author=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
