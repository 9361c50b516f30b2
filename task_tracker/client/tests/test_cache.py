import itertools
from datetime import UTC
from datetime import datetime

from task_tracker.client.cache import TaskCache
from task_tracker.client.cache import TaskFilter
from task_tracker.realtime.schemas import Comment
from task_tracker.realtime.schemas import Task

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def make_task(task_id, **fields) -> Task:
    values = {
        "id": task_id,
        "title": f"Task {task_id}",
        "created_by": 1,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(fields)
    return Task(**values)


def make_comment(comment_id, content="hi", author=2) -> Comment:
    return Comment(id=comment_id, content=content, author=author, created_at=NOW)


def test_full_fetch_replaces_everything():
    cache = TaskCache()
    cache.upsert(make_task(99))
    assert cache.stale

    cache.replace_all([make_task(1), make_task(2)])

    assert not cache.stale
    assert {t.id for t in cache.tasks} == {1, 2}
    assert 99 not in cache


def test_upsert_is_idempotent():
    cache = TaskCache()
    task = make_task(1, title="A")
    cache.upsert(task)
    cache.upsert(task)
    assert len(cache) == 1
    cache.upsert(make_task(1, title="B"))
    assert cache.get(1).title == "B"
    assert len(cache) == 1


def test_filtered_view_is_independent_of_arrival_order():
    changes = [
        ("upsert", make_task(1, status="todo", priority="high")),
        ("upsert", make_task(2, status="review", priority="high")),
        ("upsert", make_task(3, status="todo", priority="low", assigned_to=5)),
        ("remove", 2),
    ]
    views = set()
    for order in itertools.permutations(changes[:3]):
        cache = TaskCache()
        cache.set_filter(status="todo")
        for action, arg in (*order, changes[3]):
            getattr(cache, action)(arg)
        views.add(tuple(sorted(t.id for t in cache.filtered)))
    assert views == {(1, 3)}


def test_filtered_view_follows_updates_out_of_and_into_the_filter():
    cache = TaskCache()
    cache.replace_all([make_task(1, status="todo"), make_task(2, status="todo")])
    cache.set_filter(status="todo")

    cache.upsert(make_task(1, status="completed"))
    assert [t.id for t in cache.filtered] == [2]

    cache.upsert(make_task(1, status="todo"))
    assert sorted(t.id for t in cache.filtered) == [1, 2]


def test_set_filter_keeps_unchanged_fields():
    cache = TaskCache()
    cache.set_filter(status="todo")
    cache.set_filter(assigned_to=5)
    assert cache.filter == TaskFilter(status="todo", assigned_to=5)
    cache.set_filter(status=None)
    assert cache.filter == TaskFilter(assigned_to=5)
    cache.clear_filter()
    assert cache.filter.is_empty


def test_filter_matching():
    task = make_task(1, status="review", priority="urgent", assigned_to=3)
    assert TaskFilter().matches(task)
    assert TaskFilter(status="review", priority="urgent", assigned_to=3).matches(task)
    assert not TaskFilter(priority="low").matches(task)
    assert not TaskFilter(assigned_to=4).matches(task)


def test_delete_clears_open_detail():
    cache = TaskCache()
    cache.replace_all([make_task(1), make_task(2)])
    cache.open_task(1)

    assert cache.remove(1)
    assert cache.current_task is None
    assert cache.current_task_id is None
    assert not cache.remove(1)


def test_detail_view_reads_the_cached_version():
    cache = TaskCache()
    cache.replace_all([make_task(1, title="Old")])
    cache.open_task(1)
    cache.upsert(make_task(1, title="New"))
    assert cache.current_task.title == "New"


def test_full_fetch_without_open_task_closes_detail():
    cache = TaskCache()
    cache.replace_all([make_task(1)])
    cache.open_task(1)
    cache.replace_all([make_task(2)])
    assert cache.current_task_id is None


def test_comment_for_uncached_task_is_dropped():
    cache = TaskCache()
    assert not cache.append_comment(7, make_comment(1))
    assert 7 not in cache


def test_same_comment_counts_once():
    cache = TaskCache()
    cache.replace_all([make_task(1)])
    assert cache.append_comment(1, make_comment(10, "first"))
    assert cache.append_comment(1, make_comment(10, "first"))
    assert cache.append_comment(1, make_comment(11, "second"))
    assert [c.content for c in cache.get(1).comments] == ["first", "second"]


def test_invalidate_marks_stale_until_next_fetch():
    cache = TaskCache()
    cache.replace_all([make_task(1)])
    cache.invalidate()
    assert cache.stale
    assert 1 in cache
    cache.replace_all([])
    assert not cache.stale
