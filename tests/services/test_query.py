"""Unit tests for filtering, sorting and pagination of tasks."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import make_task
from taskshare.models import TaskFilters, TaskPriority, TaskStatus
from taskshare.services.query import (
    apply_filters,
    list_visible,
    page_visible,
    paginate,
    sort_tasks,
    task_stats,
)

NOW = datetime(2024, 6, 10, 12, 0, 0)


def _ids(tasks):
    return [t.id for t in tasks]


# ---------------------------------------------------------------------------
# apply_filters
# ---------------------------------------------------------------------------


@pytest.fixture()
def mixed_status():
    return [
        make_task("c1", status=TaskStatus.COMPLETED, minutes=1),
        make_task("p1", status=TaskStatus.PENDING, minutes=2),
        make_task("c2", status=TaskStatus.COMPLETED, minutes=3),
        make_task("i1", status=TaskStatus.IN_PROGRESS, minutes=4),
        make_task("p2", status=TaskStatus.PENDING, minutes=5),
    ]


@pytest.mark.parametrize("sort", ["created_at:asc", "created_at:desc", "priority:desc", "title:asc"])
def test_completed_filter_returns_exactly_completed(mixed_status, sort):
    filters = TaskFilters(status="completed", sort=sort)
    result = list_visible(mixed_status, "owner", filters, now=NOW)
    assert sorted(_ids(result)) == ["c1", "c2"]


def test_priority_filter():
    tasks = [
        make_task("h", priority=TaskPriority.HIGH),
        make_task("l", priority=TaskPriority.LOW),
    ]
    assert _ids(apply_filters(tasks, TaskFilters(priority="high"), NOW)) == ["h"]


def test_search_is_case_insensitive_over_title_and_description():
    tasks = [
        make_task("t", title="Quarterly REPORT"),
        make_task("d", title="Something", description="draft the report"),
        make_task("n", title="Nothing here"),
    ]
    result = apply_filters(tasks, TaskFilters(search="report"), NOW)
    assert _ids(result) == ["t", "d"]


def test_due_today_uses_calendar_date():
    tasks = [
        make_task("today", due_date=NOW.replace(hour=23)),
        make_task("tomorrow", due_date=NOW + timedelta(days=1)),
        make_task("none"),
    ]
    assert _ids(apply_filters(tasks, TaskFilters(due="today"), NOW)) == ["today"]


def test_overdue_excludes_completed_tasks():
    past = NOW - timedelta(days=1)
    tasks = [
        make_task("late", due_date=past),
        make_task("done", due_date=past, status=TaskStatus.COMPLETED),
        make_task("future", due_date=NOW + timedelta(days=1)),
    ]
    assert _ids(apply_filters(tasks, TaskFilters(due="overdue"), NOW)) == ["late"]


def test_empty_filters_keep_everything(mixed_status):
    assert len(apply_filters(mixed_status, TaskFilters(), NOW)) == 5


# ---------------------------------------------------------------------------
# sort_tasks
# ---------------------------------------------------------------------------


def test_due_date_ascending_puts_missing_due_dates_last():
    tasks = [
        make_task("none-1"),
        make_task("later", due_date=NOW + timedelta(days=5)),
        make_task("none-2"),
        make_task("sooner", due_date=NOW + timedelta(days=1)),
    ]
    assert _ids(sort_tasks(tasks, "due_date:asc")) == ["sooner", "later", "none-1", "none-2"]


def test_priority_descending_is_stable():
    tasks = [
        make_task("m1", priority=TaskPriority.MEDIUM),
        make_task("l1", priority=TaskPriority.LOW),
        make_task("h1", priority=TaskPriority.HIGH),
        make_task("m2", priority=TaskPriority.MEDIUM),
        make_task("h2", priority=TaskPriority.HIGH),
    ]
    assert _ids(sort_tasks(tasks, "priority:desc")) == ["h1", "h2", "m1", "m2", "l1"]


def test_created_at_orders():
    tasks = [make_task("b", minutes=2), make_task("a", minutes=1), make_task("c", minutes=3)]
    assert _ids(sort_tasks(tasks, "created_at:asc")) == ["a", "b", "c"]
    assert _ids(sort_tasks(tasks, "created_at:desc")) == ["c", "b", "a"]


def test_title_ascending_ignores_case():
    tasks = [make_task("2", title="beta"), make_task("1", title="Alpha")]
    assert _ids(sort_tasks(tasks, "title:asc")) == ["1", "2"]


def test_unknown_sort_raises():
    with pytest.raises(ValueError):
        sort_tasks([], "owner:asc")


# ---------------------------------------------------------------------------
# paginate / list_visible
# ---------------------------------------------------------------------------


def test_paginate_limit_and_offset():
    tasks = [make_task(str(i), minutes=i) for i in range(5)]
    assert _ids(paginate(tasks, limit=2, offset=1)) == ["1", "2"]
    assert _ids(paginate(tasks, offset=3)) == ["3", "4"]
    assert paginate(tasks, limit=2, offset=10) == []


def test_list_visible_returns_only_interested_party_tasks():
    tasks = [
        make_task("own", owner_id="bob"),
        make_task("shared", owner_id="olivia", shares=[("bob", "view")]),
        make_task("other", owner_id="olivia"),
    ]
    result = list_visible(tasks, "bob", TaskFilters(sort="created_at:asc"), now=NOW)
    assert sorted(_ids(result)) == ["own", "shared"]


def test_list_visible_is_restartable():
    tasks = [make_task(str(i), minutes=i) for i in range(3)]
    first = list_visible(tasks, "owner", now=NOW)
    second = list_visible(tasks, "owner", now=NOW)
    assert _ids(first) == _ids(second) == ["2", "1", "0"]


def test_page_visible_reports_total_across_pages():
    tasks = [make_task(str(i), minutes=i) for i in range(5)]
    tasks.append(make_task("hidden", owner_id="olivia"))

    page = page_visible(tasks, "owner", TaskFilters(limit=2, offset=2), now=NOW)

    assert _ids(page.tasks) == ["2", "1"]
    assert page.total == 5
    assert page.total_pages == 3
    assert page.has_next is True
    assert page.has_prev is True


# ---------------------------------------------------------------------------
# task_stats
# ---------------------------------------------------------------------------


def test_task_stats_counts(mixed_status):
    overdue = make_task("late", due_date=NOW - timedelta(hours=1))
    stats = task_stats([*mixed_status, overdue], now=NOW)
    assert stats.total == 6
    assert stats.pending == 3
    assert stats.in_progress == 1
    assert stats.completed == 2
    assert stats.overdue == 1
