"""Access resolution for shared tasks.

Pure functions over a Task: no I/O, no repository access. Share entries
hold resolved identity ids, so an identity's email is never consulted.
"""

from __future__ import annotations

from taskshare.exceptions import PermissionDenied
from taskshare.models import AccessDecision, Permission, Task, User

NO_ACCESS = AccessDecision(can_access=False, permission=Permission.NONE)


def _identity_id(identity: User | str) -> str:
    return identity.id if isinstance(identity, User) else identity


def resolve_access(task: Task, identity: User | str) -> AccessDecision:
    """Decide what ``identity`` may do with ``task``.

    The owner always holds edit. Otherwise the first share entry for the
    identity decides; with no entry there is no access. A deactivated
    ``User`` has no access at all.
    """
    if isinstance(identity, User) and not identity.is_active:
        return NO_ACCESS
    user_id = _identity_id(identity)
    if not user_id:
        return NO_ACCESS
    if user_id == task.owner_id:
        return AccessDecision(can_access=True, permission=Permission.EDIT)
    entry = task.share_entry(user_id)
    if entry is None:
        return NO_ACCESS
    return AccessDecision(can_access=True, permission=entry.permission)


def interested_parties(task: Task) -> set[str]:
    """Owner plus every collaborator on the share list."""
    return {task.owner_id} | {entry.user_id for entry in task.share_list}


def require_view(task: Task, identity: User | str) -> AccessDecision:
    decision = resolve_access(task, identity)
    if not decision.can_access:
        raise PermissionDenied(f"No access to task {task.id}")
    return decision


def require_edit(task: Task, identity: User | str) -> AccessDecision:
    decision = require_view(task, identity)
    if decision.permission != Permission.EDIT:
        raise PermissionDenied(f"Edit permission required on task {task.id}")
    return decision


def require_owner(task: Task, identity: User | str) -> None:
    inactive = isinstance(identity, User) and not identity.is_active
    if inactive or _identity_id(identity) != task.owner_id:
        raise PermissionDenied(f"Only the owner can do this to task {task.id}")
