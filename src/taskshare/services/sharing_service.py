"""Sharing service - grants and revokes collaborator access.

Only the owner may change a task's share list. Targets are resolved to
active identities before anything is written; targets that cannot be
resolved come back as warnings instead of failing the whole call.
"""

from __future__ import annotations

from collections.abc import Sequence

from taskshare.exceptions import (
    NotFound,
    PermissionDenied,
    UnknownRecipient,
    ValidationError,
)
from taskshare.models import (
    Collaborator,
    EventType,
    Permission,
    RecipientWarning,
    ShareEntry,
    ShareResult,
    Task,
    User,
)
from taskshare.models.core import utcnow
from taskshare.repositories import TaskRepository, UserRepository
from taskshare.services.access import require_owner, require_view
from taskshare.services.notifier import ChangeNotifier
from taskshare.utils.logger import get_logger

logger = get_logger().getChild("sharing")


async def require_active_user(users: UserRepository, user_id: str) -> User:
    """Load the acting identity; deactivated identities may not act at all.

    Raises:
        NotFound: If the identity is not registered
        PermissionDenied: If the identity was deactivated
    """
    user = await users.get(user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    if not user.is_active:
        raise PermissionDenied(f"User {user_id} is deactivated")
    return user


def parse_permission(value: Permission | str) -> Permission:
    """Accept "view" or "edit" (any case); anything else is a ValidationError."""
    try:
        permission = Permission(value.lower() if isinstance(value, str) else value)
    except ValueError as e:
        raise ValidationError(["permission"], f"Unknown permission: {value}") from e
    if permission == Permission.NONE:
        raise ValidationError(["permission"], "permission must be view or edit")
    return permission


class SharingService:
    """Service for share-list mutations on tasks."""

    def __init__(
        self,
        task_repository: TaskRepository,
        user_repository: UserRepository,
        notifier: ChangeNotifier,
    ):
        self.tasks = task_repository
        self.users = user_repository
        self.notifier = notifier

    async def _load(self, task_id: str) -> Task:
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found")
        return task

    async def resolve_target(self, target: str) -> User | None:
        """Look up an identity by email (contains "@") or by id."""
        target = target.strip()
        if not target:
            return None
        if "@" in target:
            return await self.users.find_by_email(target)
        return await self.users.get(target)

    async def share(
        self,
        task_id: str,
        requester_id: str,
        targets: Sequence[str],
        permission: Permission | str,
    ) -> ShareResult:
        """Grant ``permission`` on a task to each target.

        Existing grants are overwritten and their timestamp refreshed, so
        repeating a call leaves the share list in the same state.

        Raises:
            NotFound: If the task does not exist
            PermissionDenied: If the requester is not the owner or is deactivated
            ValidationError: If the permission or target list is invalid
            UnknownRecipient: If no target resolves to an active identity
        """
        actor = await require_active_user(self.users, requester_id)
        permission = parse_permission(permission)
        if not targets:
            raise ValidationError(["targets"], "At least one share target is required")

        task = await self._load(task_id)
        require_owner(task, actor)

        warnings: list[RecipientWarning] = []
        resolved: list[str] = []
        for target in targets:
            user = await self.resolve_target(target)
            if user is None:
                warnings.append(RecipientWarning(target=target, reason="unknown user"))
            elif not user.is_active:
                warnings.append(RecipientWarning(target=target, reason="user is inactive"))
            elif user.id == task.owner_id:
                warnings.append(RecipientWarning(target=target, reason="owner already has access"))
            elif user.id not in resolved:
                resolved.append(user.id)

        if not resolved:
            raise UnknownRecipient(list(targets))

        now = utcnow()
        share_list = [e for e in task.share_list if e.user_id not in resolved]
        existing = {e.user_id for e in task.share_list}
        new_recipients = [uid for uid in resolved if uid not in existing]
        updated_recipients = [uid for uid in resolved if uid in existing]
        share_list.extend(
            ShareEntry(user_id=uid, permission=permission, shared_at=now) for uid in resolved
        )

        updated = await self.tasks.update(
            task.id, {"share_list": share_list}, expected_version=task.version
        )
        if updated is None:
            raise NotFound(f"Task {task_id} not found")

        logger.info(
            "task %s shared by %s with %s (%s)",
            task.id,
            requester_id,
            ", ".join(resolved),
            permission.value,
        )
        await self.notifier.notify(
            EventType.SHARED, updated, requester_id, new_recipients=new_recipients
        )
        return ShareResult(
            task=updated,
            new_recipients=new_recipients,
            updated_recipients=updated_recipients,
            warnings=warnings,
        )

    async def unshare(self, task_id: str, requester_id: str, target: str) -> Task:
        """Revoke a collaborator's access; revoking an absent grant is a no-op.

        ``target`` may be an identity id or email. The removed collaborator
        still receives the update event so their view drops the task.
        """
        actor = await require_active_user(self.users, requester_id)
        task = await self._load(task_id)
        require_owner(task, actor)

        user = await self.resolve_target(target)
        user_id = user.id if user else target.strip()
        if task.share_entry(user_id) is None:
            return task

        share_list = [e for e in task.share_list if e.user_id != user_id]
        updated = await self.tasks.update(
            task.id, {"share_list": share_list}, expected_version=task.version
        )
        if updated is None:
            raise NotFound(f"Task {task_id} not found")

        logger.info("task %s unshared from %s by %s", task.id, user_id, requester_id)
        await self.notifier.notify(
            EventType.UPDATED, updated, requester_id, extra_recipients=[user_id]
        )
        return updated

    async def collaborators(self, task_id: str, requester_id: str) -> list[Collaborator]:
        """Share entries joined with each collaborator's email and name."""
        actor = await require_active_user(self.users, requester_id)
        task = await self._load(task_id)
        require_view(task, actor)

        result = []
        for entry in task.share_list:
            user = await self.users.get(entry.user_id)
            result.append(
                Collaborator(
                    user_id=entry.user_id,
                    email=user.email if user else None,
                    name=user.name if user else None,
                    permission=entry.permission,
                    shared_at=entry.shared_at,
                )
            )
        return result
