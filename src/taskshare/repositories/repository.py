"""Repository abstraction layer for taskshare.

This module defines the abstract base classes (interfaces) for the task and
identity stores, following the hexagonal architecture (Ports & Adapters)
pattern.

Repositories provide an abstraction over data persistence, so the sharing,
access and notification logic stays independent of the storage backend
(relational SQLite or JSON document store).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from taskshare.models import Task, User

# Keys accepted by TaskRepository.update().
UPDATABLE_TASK_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "tags",
        "share_list",
        "completed_at",
    }
)


class TaskRepository(ABC):
    """Abstract base class for task persistence operations.

    Implementations must give single-record atomicity: an update either
    applies completely or not at all. Soft-deleted tasks are invisible to
    every read.
    """

    @abstractmethod
    async def insert(self, task: Task) -> Task:
        """Persist a new task.

        Args:
            task: Fully built Task (id and timestamps already assigned)

        Returns:
            The stored Task

        Raises:
            StorageError: If the id already exists or the store fails
        """
        raise NotImplementedError("TaskRepository.insert() must be implemented by adapter")

    @abstractmethod
    async def find_by_id(self, task_id: str) -> Task | None:
        """Get a task by ID.

        Args:
            task_id: Unique identifier for the task

        Returns:
            Task, or None if it does not exist or was deleted
        """
        raise NotImplementedError(
            "TaskRepository.find_by_id() must be implemented by adapter"
        )

    @abstractmethod
    async def find_by_owner_or_shared_with(self, user_id: str) -> list[Task]:
        """List every live task owned by or shared with an identity.

        Args:
            user_id: Identity to look up

        Returns:
            Tasks in no particular order
        """
        raise NotImplementedError(
            "TaskRepository.find_by_owner_or_shared_with() must be implemented by adapter"
        )

    @abstractmethod
    async def update(
        self,
        task_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Task | None:
        """Apply a partial update atomically.

        The store refreshes ``updated_at`` and increments ``version``.

        Args:
            task_id: Unique identifier for the task
            changes: Field values keyed by name (see UPDATABLE_TASK_FIELDS)
            expected_version: When given, the update only applies if the
                stored version still matches

        Returns:
            Updated Task, or None if the task does not exist

        Raises:
            ConflictError: If expected_version does not match
        """
        raise NotImplementedError("TaskRepository.update() must be implemented by adapter")

    @abstractmethod
    async def delete(self, task_id: str) -> bool:
        """Soft-delete a task.

        Args:
            task_id: Unique identifier for the task

        Returns:
            True if a live task was deleted, False if none existed
        """
        raise NotImplementedError("TaskRepository.delete() must be implemented by adapter")


class UserRepository(ABC):
    """Abstract base class for identity persistence operations."""

    @abstractmethod
    async def upsert(self, user: User) -> User:
        """Insert an identity or update the one with the same id."""
        raise NotImplementedError("UserRepository.upsert() must be implemented by adapter")

    @abstractmethod
    async def get(self, user_id: str) -> User | None:
        """Get an identity by id."""
        raise NotImplementedError("UserRepository.get() must be implemented by adapter")

    @abstractmethod
    async def find_by_email(self, email: str) -> User | None:
        """Get an identity by email (case-insensitive)."""
        raise NotImplementedError(
            "UserRepository.find_by_email() must be implemented by adapter"
        )

    @abstractmethod
    async def list_all(self) -> list[User]:
        """List every identity, active or not."""
        raise NotImplementedError("UserRepository.list_all() must be implemented by adapter")

    @abstractmethod
    async def set_active(self, user_id: str, active: bool) -> User | None:
        """Activate or soft-deactivate an identity."""
        raise NotImplementedError(
            "UserRepository.set_active() must be implemented by adapter"
        )

    @abstractmethod
    async def find_by_query(
        self, query: str, exclude_id: str | None = None, limit: int = 10
    ) -> list[User]:
        """Active identities whose name or email contains ``query``.

        Args:
            query: Case-insensitive substring
            exclude_id: Identity to leave out (usually the caller)
            limit: Maximum number of results

        Returns:
            Matches ordered by email
        """
        raise NotImplementedError(
            "UserRepository.find_by_query() must be implemented by adapter"
        )
