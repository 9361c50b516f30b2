from django.contrib import admin

from task_tracker.tasks import models


class CommentInline(admin.TabularInline):
    model = models.Comment
    extra = 0


@admin.register(models.Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "status", "priority", "assigned_to", "created_by"]
    search_fields = ["title", "description"]
    list_filter = ["status", "priority", "created_at"]
    inlines = [CommentInline]
