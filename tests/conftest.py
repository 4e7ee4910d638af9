"""Shared test fixtures and configuration.

Provides isolated storage (both backends), an in-memory notification
transport and a real ConfigService rooted in a temporary directory.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
import pytest_asyncio

from taskshare.models import Permission, ShareEntry, Task
from taskshare.models.core import utcnow
from taskshare.models.strategy import DocumentStrategy, SqliteStrategy, StrategyContext
from taskshare.services import ChangeNotifier, InMemoryTransport, TaskService, UserService

# ---------------------------------------------------------------------------
# Task builders
# ---------------------------------------------------------------------------

_BASE = datetime(2024, 6, 1, 10, 0, 0)


def make_task(
    task_id: str = "task-1",
    owner_id: str = "owner",
    *,
    title: str = "Write spec",
    shares: list[tuple[str, str]] | None = None,
    minutes: int = 0,
    **fields,
) -> Task:
    """Build a Task directly, bypassing services (for pure-function tests)."""
    created = _BASE + timedelta(minutes=minutes)
    share_list = [
        ShareEntry(user_id=uid, permission=Permission(perm), shared_at=created)
        for uid, perm in (shares or [])
    ]
    return Task(
        id=task_id,
        title=title,
        owner_id=owner_id,
        share_list=share_list,
        created_at=created,
        updated_at=created,
        **fields,
    )


@pytest.fixture()
def future():
    """A due date safely in the future."""
    return utcnow() + timedelta(days=3)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture(params=["sqlite", "document"])
def strategy_context(request) -> StrategyContext:
    """In-memory StrategyContext, once per storage backend."""
    if request.param == "sqlite":
        return StrategyContext(SqliteStrategy(":memory:"))
    return StrategyContext(DocumentStrategy())


@pytest.fixture()
def task_repo(strategy_context):
    return strategy_context.task_repository


@pytest.fixture()
def user_repo(strategy_context):
    return strategy_context.user_repository


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture()
def task_service(strategy_context, transport) -> TaskService:
    return TaskService(
        strategy_context.task_repository,
        strategy_context.user_repository,
        ChangeNotifier(transport),
    )


@pytest.fixture()
def user_service(strategy_context, transport) -> UserService:
    return UserService(
        strategy_context.user_repository,
        strategy_context.task_repository,
        ChangeNotifier(transport),
    )


@pytest_asyncio.fixture()
async def people(user_service):
    """Registered identities keyed by first name."""
    return {
        "olivia": await user_service.register("olivia@example.com", "Olivia"),
        "bob": await user_service.register("bob@example.com", "Bob"),
        "carol": await user_service.register("carol@example.com", "Carol"),
    }


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from taskshare.services.config_service import get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with patch("taskshare.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("taskshare.services.config_service.user_data_dir", return_value=tmpdir):
            from taskshare.services.config_service import ConfigService

            svc = ConfigService()
            yield svc
    get_config_service.cache_clear()
