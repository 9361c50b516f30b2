import pytest
from django.urls import reverse
from rest_framework import status

from task_tracker.tasks.models import Comment
from task_tracker.tasks.models import Task

pytestmark = pytest.mark.django_db


@pytest.fixture
def task(alice, bob):
    return Task.objects.create(
        title="Draft release notes",
        status=Task.Status.IN_PROGRESS,
        priority=Task.Priority.HIGH,
        assigned_to=bob,
        created_by=alice,
    )


def detail_url(task_id):
    return reverse("api_v1:tasks-detail", kwargs={"pk": task_id})


def test_anonymous_requests_are_rejected(api_client):
    r = api_client.get(reverse("api_v1:tasks-list"))
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_sets_creator_and_returns_full_task(api_client, alice, bob, realtime):
    api_client.force_authenticate(alice)
    r = api_client.post(
        reverse("api_v1:tasks-list"),
        {"title": "  New task  ", "assignedTo": bob.pk, "priority": "urgent"},
        format="json",
    )
    assert r.status_code == status.HTTP_201_CREATED, r.data
    assert r.data["title"] == "New task"
    assert r.data["createdBy"] == alice.pk
    assert r.data["assignedTo"] == bob.pk
    assert r.data["assignedToUser"] == {"id": bob.pk, "name": "Bob Brown"}
    assert r.data["status"] == "todo"
    assert r.data["comments"] == []


def test_create_requires_title(api_client, alice, realtime):
    api_client.force_authenticate(alice)
    r = api_client.post(reverse("api_v1:tasks-list"), {"title": "   "}, format="json")
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "title" in r.data


def test_create_rejects_unknown_assignee(api_client, alice, realtime):
    api_client.force_authenticate(alice)
    r = api_client.post(
        reverse("api_v1:tasks-list"),
        {"title": "T", "assignedTo": 99999},
        format="json",
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_list_is_a_plain_list_for_any_member(api_client, carol, task):
    api_client.force_authenticate(carol)
    r = api_client.get(reverse("api_v1:tasks-list"))
    assert r.status_code == status.HTTP_200_OK
    assert [t["id"] for t in r.data] == [task.pk]


def test_filters(api_client, alice, bob, carol, task, realtime):
    Task.objects.create(title="Other", created_by=carol, priority=Task.Priority.LOW)
    api_client.force_authenticate(alice)
    url = reverse("api_v1:tasks-list")

    by_status = api_client.get(url, {"status": "in_progress"})
    assert [t["id"] for t in by_status.data] == [task.pk]

    by_assignee = api_client.get(url, {"assignedTo": bob.pk})
    assert [t["id"] for t in by_assignee.data] == [task.pk]

    by_priority = api_client.get(url, {"priority": "low"})
    assert [t["title"] for t in by_priority.data] == ["Other"]

    combined = api_client.get(url, {"status": "todo", "priority": "high"})
    assert combined.data == []


@pytest.mark.parametrize("who", ["alice", "bob", "manager"])
def test_creator_assignee_and_elevated_may_update(api_client, request, task, who, realtime):
    api_client.force_authenticate(request.getfixturevalue(who))
    r = api_client.patch(detail_url(task.pk), {"status": "review"}, format="json")
    assert r.status_code == status.HTTP_200_OK, r.data
    assert r.data["status"] == "review"


def test_unrelated_member_may_not_update(api_client, carol, task):
    api_client.force_authenticate(carol)
    r = api_client.patch(detail_url(task.pk), {"status": "review"}, format="json")
    assert r.status_code == status.HTTP_403_FORBIDDEN
    task.refresh_from_db()
    assert task.status == Task.Status.IN_PROGRESS


def test_assignee_may_not_delete(api_client, bob, task):
    api_client.force_authenticate(bob)
    r = api_client.delete(detail_url(task.pk))
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert Task.objects.filter(pk=task.pk).exists()


@pytest.mark.parametrize("who", ["alice", "manager"])
def test_creator_and_elevated_may_delete(api_client, request, task, who, realtime):
    api_client.force_authenticate(request.getfixturevalue(who))
    r = api_client.delete(detail_url(task.pk))
    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert not Task.objects.filter(pk=task.pk).exists()


def test_missing_task_is_404(api_client, alice):
    api_client.force_authenticate(alice)
    assert api_client.get(detail_url(424242)).status_code == status.HTTP_404_NOT_FOUND


def test_any_member_may_comment(api_client, carol, task, realtime):
    api_client.force_authenticate(carol)
    r = api_client.post(
        reverse("api_v1:tasks-add-comment", kwargs={"pk": task.pk}),
        {"content": " Looks good "},
        format="json",
    )
    assert r.status_code == status.HTTP_201_CREATED, r.data
    assert r.data["content"] == "Looks good"
    assert r.data["author"] == carol.pk
    assert r.data["authorName"] == "Carol Clark"

    detail = api_client.get(detail_url(task.pk))
    assert [c["content"] for c in detail.data["comments"]] == ["Looks good"]


def test_blank_comment_is_rejected(api_client, carol, task, realtime):
    api_client.force_authenticate(carol)
    r = api_client.post(
        reverse("api_v1:tasks-add-comment", kwargs={"pk": task.pk}),
        {"content": "   "},
        format="json",
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert not Comment.objects.exists()


def test_comments_are_ordered_oldest_first(alice, task, realtime):
    first = Comment.objects.create(task=task, author=alice, content="one")
    second = Comment.objects.create(task=task, author=alice, content="two")
    assert list(task.comments.all()) == [first, second]
