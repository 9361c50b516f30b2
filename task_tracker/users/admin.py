from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from task_tracker.users.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ["username", "name", "email", "is_staff"]
    search_fields = ["username", "name", "email"]
