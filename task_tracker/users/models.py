from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import Group
from django.db import models
from django.db import transaction
from django.db.models import CharField
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _

ROLE_ADMIN = "Admin"
ROLE_MANAGER = "Manager"

# API role name -> group granting it; "member" holds neither group.
ROLE_GROUPS = {
    "admin": ROLE_ADMIN,
    "manager": ROLE_MANAGER,
    "member": None,
}


class LastAdminError(Exception):
    """Raised when a role change would leave the team without an Admin."""


class User(AbstractUser):
    """
    Default custom user model for task_tracker.
    The full name is rebuilt from first/last name on every save.
    """

    name = CharField(_("Full Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), unique=True)
    avatar = models.URLField(_("Avatar"), blank=True, default="")
    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        full_name = f"{self.first_name} {self.last_name}".strip()
        self.name = full_name or self.username
        super().save(*args, **kwargs)

    def _group_names(self) -> set[str]:
        # Uses prefetched groups when the queryset has them.
        return {group.name for group in self.groups.all()}

    @property
    def role(self) -> str:
        names = self._group_names()
        if ROLE_ADMIN in names:
            return "admin"
        if ROLE_MANAGER in names:
            return "manager"
        return "member"

    @property
    def is_admin(self) -> bool:
        """Staff and Admin members may change other members' roles."""
        if self.is_staff or self.is_superuser:
            return True
        return ROLE_ADMIN in self._group_names()

    @property
    def is_elevated(self) -> bool:
        """Staff, Admin and Manager members may edit or delete any task."""
        if self.is_staff or self.is_superuser:
            return True
        return bool(self._group_names() & {ROLE_ADMIN, ROLE_MANAGER})

    @transaction.atomic
    def set_role(self, role: str) -> None:
        """Replace the user's Admin/Manager membership with ``role``."""
        if role not in ROLE_GROUPS:
            msg = f"Unknown role: {role}"
            raise ValueError(msg)
        admins = User.objects.filter(groups__name=ROLE_ADMIN)
        if (
            role != "admin"
            and admins.filter(pk=self.pk).exists()
            and admins.exclude(pk=self.pk).count() == 0
        ):
            msg = "Cannot remove the last admin"
            raise LastAdminError(msg)

        self.groups.remove(*Group.objects.filter(name__in=[ROLE_ADMIN, ROLE_MANAGER]))
        group_name = ROLE_GROUPS[role]
        if group_name is not None:
            group, _created = Group.objects.get_or_create(name=group_name)
            self.groups.add(group)
