"""Contract tests shared by every storage backend.

The ``strategy_context`` fixture runs each test once against SQLite and once
against the JSON document store.
"""

from __future__ import annotations

from datetime import datetime

import pytest
import pytest_asyncio

from conftest import make_task
from taskshare.exceptions import ConflictError, StorageError
from taskshare.models import Permission, ShareEntry, TaskStatus, User

NOW = datetime(2024, 6, 1, 10, 0, 0)


def _user(user_id: str) -> User:
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        name=user_id.title(),
        created_at=NOW,
        updated_at=NOW,
    )


@pytest_asyncio.fixture()
async def users(user_repo):
    for user_id in ("olivia", "bob", "carol"):
        await user_repo.upsert(_user(user_id))


# ---------------------------------------------------------------------------
# TaskRepository
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_insert_and_find(task_repo, users):
    task = make_task("t1", "olivia", tags=["a", "b"], shares=[("bob", "view")])

    await task_repo.insert(task)
    found = await task_repo.find_by_id("t1")

    assert found.title == task.title
    assert found.tags == ["a", "b"]
    assert found.version == 1
    assert [(e.user_id, e.permission) for e in found.share_list] == [("bob", Permission.VIEW)]


@pytest.mark.asyncio
async def test_insert_duplicate_id_fails(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia"))
    with pytest.raises(StorageError):
        await task_repo.insert(make_task("t1", "olivia"))


@pytest.mark.asyncio
async def test_find_missing_returns_none(task_repo):
    assert await task_repo.find_by_id("nope") is None


@pytest.mark.asyncio
async def test_find_by_owner_or_shared_with(task_repo, users):
    await task_repo.insert(make_task("own", "bob"))
    await task_repo.insert(make_task("shared", "olivia", shares=[("bob", "edit"), ("carol", "view")]))
    await task_repo.insert(make_task("private", "olivia"))

    bob_tasks = await task_repo.find_by_owner_or_shared_with("bob")
    olivia_tasks = await task_repo.find_by_owner_or_shared_with("olivia")

    assert sorted(t.id for t in bob_tasks) == ["own", "shared"]
    assert sorted(t.id for t in olivia_tasks) == ["private", "shared"]


@pytest.mark.asyncio
async def test_update_bumps_version(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia"))

    updated = await task_repo.update("t1", {"status": TaskStatus.COMPLETED, "completed_at": NOW})

    assert updated.status == TaskStatus.COMPLETED
    assert updated.completed is True
    assert updated.version == 2
    assert updated.updated_at != NOW


@pytest.mark.asyncio
async def test_update_with_stale_version_conflicts(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia"))
    await task_repo.update("t1", {"title": "Second"}, expected_version=1)

    with pytest.raises(ConflictError):
        await task_repo.update("t1", {"title": "Third"}, expected_version=1)

    assert (await task_repo.find_by_id("t1")).title == "Second"


@pytest.mark.asyncio
async def test_update_replaces_share_list(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia", shares=[("bob", "view")]))
    entries = [ShareEntry(user_id="carol", permission=Permission.EDIT, shared_at=NOW)]

    updated = await task_repo.update("t1", {"share_list": entries})

    assert [(e.user_id, e.permission) for e in updated.share_list] == [("carol", Permission.EDIT)]
    assert await task_repo.find_by_owner_or_shared_with("bob") == []


@pytest.mark.asyncio
async def test_update_missing_returns_none(task_repo):
    assert await task_repo.update("nope", {"title": "x"}) is None


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia"))
    with pytest.raises(ValueError):
        await task_repo.update("t1", {"owner_id": "bob"})


@pytest.mark.asyncio
async def test_delete_is_soft_and_hides_task(task_repo, users):
    await task_repo.insert(make_task("t1", "olivia", shares=[("bob", "view")]))

    assert await task_repo.delete("t1") is True
    assert await task_repo.delete("t1") is False
    assert await task_repo.find_by_id("t1") is None
    assert await task_repo.find_by_owner_or_shared_with("bob") == []
    assert await task_repo.update("t1", {"title": "Ghost"}) is None


# ---------------------------------------------------------------------------
# UserRepository
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_user_upsert_and_lookup(user_repo):
    await user_repo.upsert(_user("olivia"))

    assert (await user_repo.get("olivia")).email == "olivia@example.com"
    assert (await user_repo.find_by_email("OLIVIA@example.com")).id == "olivia"
    assert await user_repo.get("nobody") is None
    assert await user_repo.find_by_email("nobody@example.com") is None


@pytest.mark.asyncio
async def test_user_upsert_updates_existing(user_repo):
    await user_repo.upsert(_user("olivia"))
    renamed = _user("olivia").model_copy(update={"name": "Liv"})

    stored = await user_repo.upsert(renamed)

    assert stored.name == "Liv"
    assert len(await user_repo.list_all()) == 1


@pytest.mark.asyncio
async def test_user_email_is_unique(user_repo):
    await user_repo.upsert(_user("olivia"))
    clash = _user("other").model_copy(update={"email": "olivia@example.com"})
    with pytest.raises(StorageError):
        await user_repo.upsert(clash)


@pytest.mark.asyncio
async def test_set_active(user_repo):
    await user_repo.upsert(_user("olivia"))

    assert (await user_repo.set_active("olivia", False)).is_active is False
    assert (await user_repo.get("olivia")).is_active is False
    assert await user_repo.set_active("nobody", False) is None


@pytest.mark.asyncio
async def test_find_by_query_matches_name_or_email(user_repo, users):
    await user_repo.upsert(
        _user("dan").model_copy(update={"email": "d@corp.io", "name": "Bobby Dan"})
    )

    found = await user_repo.find_by_query("BOB")

    assert [u.id for u in found] == ["bob", "dan"]


@pytest.mark.asyncio
async def test_find_by_query_skips_inactive_and_excluded(user_repo, users):
    await user_repo.set_active("bob", False)

    found = await user_repo.find_by_query("example", exclude_id="olivia")

    assert [u.id for u in found] == ["carol"]


@pytest.mark.asyncio
async def test_find_by_query_orders_by_email_and_limits(user_repo, users):
    found = await user_repo.find_by_query("example.com", limit=2)

    assert [u.email for u in found] == ["bob@example.com", "carol@example.com"]
