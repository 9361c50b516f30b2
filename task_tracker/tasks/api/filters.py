import django_filters

from task_tracker.tasks.models import Task


class TaskFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Task.Status.choices)
    priority = django_filters.ChoiceFilter(choices=Task.Priority.choices)
    assignedTo = django_filters.NumberFilter(field_name="assigned_to")  # noqa: N815

    class Meta:
        model = Task
        fields = ["status", "priority", "assignedTo"]
