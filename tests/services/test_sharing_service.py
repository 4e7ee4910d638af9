"""Tests for sharing: grants, revocation and collaborator listing.

Run against both storage backends through the ``strategy_context`` fixture.
"""

from __future__ import annotations

import pytest

from taskshare.exceptions import NotFound, PermissionDenied, UnknownRecipient, ValidationError
from taskshare.models import EventType, Permission
from taskshare.services.sharing_service import parse_permission


def _share_state(task):
    return sorted((e.user_id, e.permission) for e in task.share_list)


# ---------------------------------------------------------------------------
# share
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_share_by_email_adds_resolved_identity(task_service, people, transport):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")

    result = await task_service.share(olivia.id, task.id, ["BOB@example.com"], "edit")

    assert _share_state(result.task) == [(bob.id, Permission.EDIT)]
    assert result.new_recipients == [bob.id]
    assert result.warnings == []
    [event] = [e for e in transport.events_for(bob.id) if e.type == EventType.SHARED]
    assert event.new_recipients == [bob.id]


@pytest.mark.asyncio
async def test_share_is_idempotent(task_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")

    first = await task_service.share(olivia.id, task.id, [bob.email], "view")
    second = await task_service.share(olivia.id, task.id, [bob.email], "view")

    assert _share_state(first.task) == _share_state(second.task)
    assert second.new_recipients == []
    assert second.updated_recipients == [bob.id]


@pytest.mark.asyncio
async def test_reshare_overwrites_permission_and_refreshes_timestamp(task_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")
    first = await task_service.share(olivia.id, task.id, [bob.id], "view")

    second = await task_service.share(olivia.id, task.id, [bob.id], "edit")

    assert _share_state(second.task) == [(bob.id, Permission.EDIT)]
    assert second.task.share_list[0].shared_at >= first.task.share_list[0].shared_at


@pytest.mark.asyncio
async def test_partial_success_reports_unknown_targets(task_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")

    result = await task_service.share(
        olivia.id, task.id, [bob.email, "ghost@example.com", olivia.email], "view"
    )

    assert _share_state(result.task) == [(bob.id, Permission.VIEW)]
    assert [w.target for w in result.warnings] == ["ghost@example.com", olivia.email]


@pytest.mark.asyncio
async def test_no_resolvable_target_raises_and_writes_nothing(task_service, people):
    olivia = people["olivia"]
    task = await task_service.create_task(olivia.id, "Write spec")

    with pytest.raises(UnknownRecipient) as exc_info:
        await task_service.share(olivia.id, task.id, ["ghost@example.com"], "view")

    assert exc_info.value.targets == ["ghost@example.com"]
    stored, _ = await task_service.get_task(olivia.id, task.id)
    assert stored.share_list == []
    assert stored.version == task.version


@pytest.mark.asyncio
async def test_inactive_identity_is_not_granted(task_service, user_service, people):
    olivia, carol = people["olivia"], people["carol"]
    await user_service.deactivate(carol.id)
    task = await task_service.create_task(olivia.id, "Write spec")

    with pytest.raises(UnknownRecipient):
        await task_service.share(olivia.id, task.id, [carol.email], "view")


@pytest.mark.asyncio
async def test_non_owner_cannot_share(task_service, people):
    olivia, bob, carol = people["olivia"], people["bob"], people["carol"]
    task = await task_service.create_task(olivia.id, "Write spec")
    await task_service.share(olivia.id, task.id, [bob.id], "edit")

    with pytest.raises(PermissionDenied):
        await task_service.share(bob.id, task.id, [carol.id], "view")

    stored, _ = await task_service.get_task(olivia.id, task.id)
    assert _share_state(stored) == [(bob.id, Permission.EDIT)]


@pytest.mark.asyncio
async def test_share_unknown_task(task_service, people):
    with pytest.raises(NotFound):
        await task_service.share(people["olivia"].id, "missing", ["bob@example.com"], "view")


@pytest.mark.asyncio
async def test_share_requires_targets(task_service, people):
    olivia = people["olivia"]
    task = await task_service.create_task(olivia.id, "Write spec")
    with pytest.raises(ValidationError):
        await task_service.share(olivia.id, task.id, [], "view")


def test_parse_permission():
    assert parse_permission("EDIT") == Permission.EDIT
    with pytest.raises(ValidationError):
        parse_permission("none")
    with pytest.raises(ValidationError):
        parse_permission("admin")


# ---------------------------------------------------------------------------
# unshare
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unshare_removes_entry_and_notifies_removed_user(task_service, people, transport):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")
    await task_service.share(olivia.id, task.id, [bob.id], "edit")
    transport.clear()

    updated = await task_service.unshare(olivia.id, task.id, bob.email)

    assert updated.share_list == []
    [event] = transport.events_for(bob.id)
    assert event.type == EventType.UPDATED
    with pytest.raises(PermissionDenied):
        await task_service.get_task(bob.id, task.id)


@pytest.mark.asyncio
async def test_unshare_absent_target_is_noop(task_service, people):
    olivia, carol = people["olivia"], people["carol"]
    task = await task_service.create_task(olivia.id, "Write spec")

    updated = await task_service.unshare(olivia.id, task.id, carol.id)

    assert updated.share_list == []
    assert updated.version == task.version


@pytest.mark.asyncio
async def test_non_owner_cannot_unshare(task_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")
    await task_service.share(olivia.id, task.id, [bob.id], "edit")

    with pytest.raises(PermissionDenied):
        await task_service.unshare(bob.id, task.id, bob.id)


# ---------------------------------------------------------------------------
# collaborators
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_collaborators_join_identity_details(task_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")
    await task_service.share(olivia.id, task.id, [bob.id], "view")

    [collaborator] = await task_service.collaborators(bob.id, task.id)

    assert collaborator.email == "bob@example.com"
    assert collaborator.name == "Bob"
    assert collaborator.permission == Permission.VIEW


@pytest.mark.asyncio
async def test_deactivated_owner_cannot_share(task_service, user_service, people):
    olivia, bob = people["olivia"], people["bob"]
    task = await task_service.create_task(olivia.id, "Write spec")
    await user_service.deactivate(olivia.id)

    with pytest.raises(PermissionDenied):
        await task_service.share(olivia.id, task.id, [bob.id], "view")
    with pytest.raises(PermissionDenied):
        await task_service.collaborators(olivia.id, task.id)
