"""Filtering, sorting and pagination of visible tasks.

Everything here works on plain lists already fetched from a repository, so
the same rules apply whichever backend produced them.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from taskshare.models import Task, TaskFilters, TaskPage, TaskStats, TaskStatus, User
from taskshare.models.core import as_utc, utcnow
from taskshare.services.access import resolve_access


def _is_overdue(task: Task, now: datetime) -> bool:
    return (
        task.due_date is not None
        and as_utc(task.due_date) < now
        and task.status != TaskStatus.COMPLETED
    )


def _is_due_today(task: Task, now: datetime) -> bool:
    return task.due_date is not None and as_utc(task.due_date).date() == now.date()


def _matches_search(task: Task, needle: str) -> bool:
    needle = needle.lower()
    if needle in task.title.lower():
        return True
    return bool(task.description) and needle in task.description.lower()


def apply_filters(
    tasks: Iterable[Task], filters: TaskFilters, now: datetime | None = None
) -> list[Task]:
    """Keep the tasks matching every set filter (status, priority, search, due)."""
    now = as_utc(now) if now else utcnow()
    result = []
    for task in tasks:
        if filters.status and task.status != filters.status:
            continue
        if filters.priority and task.priority != filters.priority:
            continue
        if filters.search and not _matches_search(task, filters.search):
            continue
        if filters.due == "today" and not _is_due_today(task, now):
            continue
        if filters.due == "overdue" and not _is_overdue(task, now):
            continue
        result.append(task)
    return result


def sort_tasks(tasks: Iterable[Task], sort: str = "created_at:desc") -> list[Task]:
    """Sort tasks; every ordering is stable.

    ``due_date:asc`` places tasks without a due date last.
    ``priority:desc`` orders high before medium before low.
    """
    items = list(tasks)
    if sort == "created_at:asc":
        return sorted(items, key=lambda t: as_utc(t.created_at))
    if sort == "created_at:desc":
        return sorted(items, key=lambda t: as_utc(t.created_at), reverse=True)
    if sort == "due_date:asc":
        return sorted(
            items,
            key=lambda t: (t.due_date is None, as_utc(t.due_date) if t.due_date else None),
        )
    if sort == "priority:desc":
        return sorted(items, key=lambda t: -t.priority.rank)
    if sort == "updated_at:desc":
        return sorted(items, key=lambda t: as_utc(t.updated_at), reverse=True)
    if sort == "title:asc":
        return sorted(items, key=lambda t: t.title.lower())
    raise ValueError(f"Unknown sort order: {sort}")


def paginate(tasks: list[Task], limit: int | None = None, offset: int = 0) -> list[Task]:
    end = None if limit is None else offset + limit
    return tasks[offset:end]


def page_visible(
    tasks: Iterable[Task],
    identity: User | str,
    filters: TaskFilters | None = None,
    now: datetime | None = None,
) -> TaskPage:
    """One page of the tasks ``identity`` can access, with the match total."""
    filters = filters or TaskFilters()
    visible = [t for t in tasks if resolve_access(t, identity).can_access]
    matched = sort_tasks(apply_filters(visible, filters, now), filters.sort)
    return TaskPage(
        tasks=paginate(matched, filters.limit, filters.offset),
        total=len(matched),
        limit=filters.limit,
        offset=filters.offset,
    )


def list_visible(
    tasks: Iterable[Task],
    identity: User | str,
    filters: TaskFilters | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """Tasks ``identity`` can access, filtered, sorted and paginated."""
    return page_visible(tasks, identity, filters, now).tasks


def task_stats(tasks: Iterable[Task], now: datetime | None = None) -> TaskStats:
    """Count tasks per status, plus overdue ones."""
    now = as_utc(now) if now else utcnow()
    stats = TaskStats()
    for task in tasks:
        stats.total += 1
        if task.status == TaskStatus.PENDING:
            stats.pending += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            stats.in_progress += 1
        else:
            stats.completed += 1
        if _is_overdue(task, now):
            stats.overdue += 1
    return stats
