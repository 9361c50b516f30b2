import logging

from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.mixins import UpdateModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from task_tracker.realtime.hub import get_hub
from task_tracker.users.models import LastAdminError
from task_tracker.users.models import User

from .serializers import UserRoleSerializer
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(tags=["Users"]),
    retrieve=extend_schema(tags=["Users"]),
    partial_update=extend_schema(tags=["Users"]),
    update=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, UpdateModelMixin, GenericViewSet):
    """Team members. Everyone on the team can see everyone else."""

    serializer_class = UserSerializer
    queryset = User.objects.prefetch_related("groups").order_by("name", "id")
    # Keep the team listing a plain list (no pagination).
    pagination_class = None

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["presence"] = get_hub().presence
        return context

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        if instance.pk != request.user.pk and not request.user.is_elevated:
            return Response(
                {"detail": "Not authorized to update this user."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return super().update(request, *args, **kwargs)

    @action(detail=False)
    def me(self, request):
        serializer = self.get_serializer(request.user)
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    @extend_schema(
        tags=["Users"],
        request=UserRoleSerializer,
        responses={200: UserSerializer},
    )
    @action(detail=True, methods=["post"], url_path="role")
    def role(self, request, pk=None):
        """Admins grant or revoke the Admin/Manager roles."""

        if not request.user.is_admin:
            return Response(
                {"detail": "Only admins can update user roles."},
                status=status.HTTP_403_FORBIDDEN,
            )
        user = self.get_object()
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data["role"]
        try:
            user.set_role(role)
        except LastAdminError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info("User %s set role of user %s to %s", request.user.pk, user.pk, role)
        return Response(self.get_serializer(user).data)
