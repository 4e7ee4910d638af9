"""Task service - Business logic for task operations.

This service layer sits between callers (CLI commands or any API layer) and
the repositories: it validates input, checks access, persists through the
task repository and announces every mutation through the change notifier.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from taskshare.exceptions import ConflictError, NotFound, PermissionDenied, ValidationError
from taskshare.models import (
    EDITOR_FIELDS,
    Collaborator,
    EventType,
    Permission,
    ShareResult,
    Task,
    TaskCreate,
    TaskFilters,
    TaskPage,
    TaskStats,
    TaskStatus,
    TaskUpdate,
    User,
)
from taskshare.models.core import as_utc, utcnow
from taskshare.repositories import TaskRepository, UserRepository
from taskshare.services import query
from taskshare.services.access import require_edit, require_owner, require_view
from taskshare.services.notifier import ChangeNotifier
from taskshare.services.sharing_service import SharingService, require_active_user
from taskshare.utils.logger import get_logger
from taskshare.utils.uuid_utils import generate_uuid, resolve_task_id

logger = get_logger().getChild("tasks")

# Fields that cannot be cleared with an explicit None.
_REQUIRED_FIELDS = ("title", "status", "priority", "tags")


def _check_due_date(due_date: datetime | None, now: datetime) -> datetime | None:
    if due_date is None:
        return None
    due_date = as_utc(due_date)
    if due_date < now:
        raise ValidationError(["due_date"], "due_date cannot be in the past")
    return due_date


class TaskService:
    """Service for task business logic.

    Every operation takes the acting identity's id first; access is
    resolved against the stored task on each call.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        user_repository: UserRepository,
        notifier: ChangeNotifier | None = None,
    ):
        """Initialize the task service.

        Args:
            task_repository: TaskRepository implementation for data access
            user_repository: UserRepository used to check actors and resolve share targets
            notifier: ChangeNotifier for mutation events (in-memory rooms if omitted)
        """
        self.repository = task_repository
        self.users = user_repository
        self.notifier = notifier or ChangeNotifier()
        self.sharing = SharingService(task_repository, user_repository, self.notifier)

    async def __aenter__(self) -> TaskService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.notifier.close()

    async def _require_actor(self, actor_id: str) -> User:
        return await require_active_user(self.users, actor_id)

    async def _load(self, task_id: str) -> Task:
        task = await self.repository.find_by_id(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found")
        return task

    async def create_task(
        self,
        actor_id: str,
        title: str,
        *,
        description: str | None = None,
        status: TaskStatus | str = TaskStatus.PENDING,
        priority: str = "medium",
        due_date: datetime | None = None,
        tags: Sequence[str] | None = None,
    ) -> Task:
        """Create a task owned by ``actor_id`` with an empty share list.

        Raises:
            ValidationError: If any field is malformed or due_date is in the past
            NotFound: If the actor is not a registered identity
        """
        await self._require_actor(actor_id)
        try:
            data = TaskCreate(
                title=title,
                description=description,
                status=status,
                priority=priority,
                due_date=due_date,
                tags=list(tags or []),
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        now = utcnow()
        task = Task(
            id=generate_uuid(),
            owner_id=actor_id,
            created_at=now,
            updated_at=now,
            completed_at=now if data.status == TaskStatus.COMPLETED else None,
            **{**data.model_dump(), "due_date": _check_due_date(data.due_date, now)},
        )
        created = await self.repository.insert(task)
        logger.info("task %s created by %s", created.id, actor_id)
        await self.notifier.notify(EventType.CREATED, created, actor_id)
        return created

    async def get_task(self, actor_id: str, task_id: str) -> tuple[Task, Permission]:
        """Fetch a task together with the actor's permission on it.

        Raises:
            NotFound: If the task does not exist or was deleted
            PermissionDenied: If the actor has no access or is deactivated
        """
        actor = await self._require_actor(actor_id)
        task = await self._load(task_id)
        decision = require_view(task, actor)
        return task, decision.permission

    async def update_task(
        self,
        actor_id: str,
        task_id: str,
        *,
        expected_version: int,
        **fields: Any,
    ) -> Task:
        """Apply a partial update.

        The owner may change any content field; an edit collaborator only
        description, status, priority, due_date and tags.

        Args:
            actor_id: Acting identity
            task_id: Task to update
            expected_version: Version the caller last read
            **fields: Fields to change

        Raises:
            ValidationError: If a field is unknown or invalid
            PermissionDenied: If the actor may not change these fields
            ConflictError: If the task changed since ``expected_version``
        """
        unknown = set(fields) - set(TaskUpdate.model_fields)
        if unknown:
            raise ValidationError(sorted(unknown), f"Unknown fields: {', '.join(sorted(unknown))}")
        try:
            changes = TaskUpdate(**fields).model_dump(exclude_unset=True)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        cleared = [name for name in _REQUIRED_FIELDS if name in changes and changes[name] is None]
        if cleared:
            raise ValidationError(cleared, f"Cannot clear: {', '.join(cleared)}")

        actor = await self._require_actor(actor_id)
        task = await self._load(task_id)
        require_edit(task, actor)
        if actor.id != task.owner_id:
            forbidden = sorted(set(changes) - EDITOR_FIELDS)
            if forbidden:
                raise PermissionDenied(
                    f"Collaborators cannot change: {', '.join(forbidden)}"
                )
        if task.version != expected_version:
            raise ConflictError(task.id, expected_version, task.version)
        if not changes:
            return task

        now = utcnow()
        if "due_date" in changes:
            changes["due_date"] = _check_due_date(changes["due_date"], now)
        if "status" in changes and changes["status"] != task.status:
            changes["completed_at"] = now if changes["status"] == TaskStatus.COMPLETED else None

        updated = await self.repository.update(
            task.id, changes, expected_version=expected_version
        )
        if updated is None:
            raise NotFound(f"Task {task_id} not found")
        logger.info(
            "task %s updated by %s: %s", task.id, actor_id, ", ".join(sorted(changes))
        )
        await self.notifier.notify(EventType.UPDATED, updated, actor_id)
        return updated

    async def delete_task(self, actor_id: str, task_id: str) -> Task:
        """Soft-delete a task and notify its pre-deletion audience.

        Returns:
            The task as it was before deletion
        """
        actor = await self._require_actor(actor_id)
        task = await self._load(task_id)
        require_owner(task, actor)
        if not await self.repository.delete(task.id):
            raise NotFound(f"Task {task_id} not found")
        logger.info("task %s deleted by %s", task.id, actor_id)
        await self.notifier.notify(EventType.DELETED, task, actor_id)
        return task

    async def visible_tasks(self, actor_id: str) -> list[Task]:
        """Every live task the actor owns or collaborates on, unfiltered."""
        await self._require_actor(actor_id)
        return await self.repository.find_by_owner_or_shared_with(actor_id)

    async def list_tasks(
        self, actor_id: str, filters: TaskFilters | None = None
    ) -> list[Task]:
        """Tasks the actor owns or collaborates on, filtered, sorted and paginated."""
        tasks = await self.visible_tasks(actor_id)
        return query.list_visible(tasks, actor_id, filters)

    async def list_page(
        self, actor_id: str, filters: TaskFilters | None = None
    ) -> TaskPage:
        """Like list_tasks, plus the total match count and page flags."""
        tasks = await self.visible_tasks(actor_id)
        return query.page_visible(tasks, actor_id, filters)

    async def stats(self, actor_id: str) -> TaskStats:
        visible = query.list_visible(await self.visible_tasks(actor_id), actor_id)
        return query.task_stats(visible)

    async def resolve_task_id(self, actor_id: str, short_or_full_id: str) -> str:
        """Resolve an id prefix among the tasks visible to the actor."""
        try:
            return resolve_task_id(short_or_full_id, await self.visible_tasks(actor_id))
        except ValueError as e:
            raise NotFound(str(e)) from e

    async def share(
        self,
        actor_id: str,
        task_id: str,
        targets: Sequence[str],
        permission: Permission | str,
    ) -> ShareResult:
        return await self.sharing.share(task_id, actor_id, targets, permission)

    async def unshare(self, actor_id: str, task_id: str, target: str) -> Task:
        return await self.sharing.unshare(task_id, actor_id, target)

    async def collaborators(self, actor_id: str, task_id: str) -> list[Collaborator]:
        return await self.sharing.collaborators(task_id, actor_id)
