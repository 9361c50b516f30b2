"""Republish task mutations on the realtime channel.

Payloads are serialized eagerly, inside the mutation, so the published
representation is the post-mutation state even if the instance changes later.
Publishing itself waits for the transaction to commit.
"""

import logging

from django.db.models.signals import post_delete
from django.db.models.signals import post_save
from django.db.models.signals import pre_save
from django.db.transaction import on_commit
from django.dispatch import receiver

from task_tracker.realtime.events.tasks import publish_comment_added
from task_tracker.realtime.events.tasks import publish_task_created
from task_tracker.realtime.events.tasks import publish_task_deleted
from task_tracker.realtime.events.tasks import publish_task_updated
from task_tracker.realtime.router import TaskFacts

from .api.serializers import CommentSerializer
from .api.serializers import TaskSerializer
from .models import Comment
from .models import Task

logger = logging.getLogger(__name__)


def task_facts(task: Task) -> TaskFacts:
    return TaskFacts(
        task_id=task.pk,
        title=task.title,
        status=task.status,
        creator_id=task.created_by_id,
        assignee_id=task.assigned_to_id,
    )


@receiver(pre_save, sender=Task)
def store_previous_state(sender, instance, **kwargs):
    instance._previous_facts = None  # noqa: SLF001
    if instance.pk:
        try:
            orig = Task.objects.get(pk=instance.pk)
        except Task.DoesNotExist:
            return
        instance._previous_facts = task_facts(orig)  # noqa: SLF001


@receiver(post_save, sender=Task)
def task_saved(sender, instance, created, **kwargs):
    payload = dict(TaskSerializer(instance).data)
    if created:
        on_commit(lambda: publish_task_created(payload))
        return
    previous = getattr(instance, "_previous_facts", None)
    on_commit(lambda: publish_task_updated(payload, previous))


@receiver(post_delete, sender=Task)
def task_deleted(sender, instance, **kwargs):
    # The pk is cleared on the instance once the delete finishes.
    task_id = instance.pk
    on_commit(lambda: publish_task_deleted(task_id))


@receiver(post_save, sender=Comment)
def comment_added(sender, instance, created, **kwargs):
    if not created:
        logger.warning("Comment %s was modified; comments are append-only", instance.pk)
        return
    task_payload = dict(TaskSerializer(instance.task).data)
    comment_payload = dict(CommentSerializer(instance).data)
    on_commit(lambda: publish_comment_added(task_payload, comment_payload))
