"""
Strategy Pattern: Storage Strategy Container

The configuration layer picks one strategy at startup (relational SQLite or
JSON document store) and wraps it in a StrategyContext. Services only ever
see the repository interfaces, never the backend behind them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from taskshare.repositories.repository import TaskRepository, UserRepository


class StorageStrategy(ABC):
    """
    Abstract base class for storage strategies.

    A strategy encapsulates ALL repository implementations for a given
    storage backend, sharing one underlying connection or store between them.
    """

    @abstractmethod
    def get_task_repository(self) -> TaskRepository:
        """Get task repository implementation for this strategy."""

    @abstractmethod
    def get_user_repository(self) -> UserRepository:
        """Get identity repository implementation for this strategy."""

    @property
    @abstractmethod
    def storage_type(self) -> str:
        """Get storage type identifier (for logging/debugging)."""


class SqliteStrategy(StorageStrategy):
    """
    Relational storage strategy.

    Both repositories share one SQLite connection so foreign keys between
    tasks, shares and users hold.
    """

    def __init__(self, db_path: str = ":memory:"):
        """
        Initialize relational strategy.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path

        # Import here to avoid circular dependencies
        from taskshare.adapters.sqlite import (
            SqliteTaskRepository,
            SqliteUserRepository,
            get_connection,
        )

        self.connection = get_connection(db_path)
        self._task_repo = SqliteTaskRepository(connection=self.connection)
        self._user_repo = SqliteUserRepository(connection=self.connection)

    def get_task_repository(self) -> TaskRepository:
        return self._task_repo

    def get_user_repository(self) -> UserRepository:
        return self._user_repo

    @property
    def storage_type(self) -> str:
        return "sqlite"


class DocumentStrategy(StorageStrategy):
    """
    Document storage strategy.

    Tasks embed their share list; both collections live in one JSON file
    (or in memory when no path is given).
    """

    def __init__(self, path: str | None = None):
        # Import here to avoid circular dependencies
        from taskshare.adapters.document import (
            DocumentStore,
            DocumentTaskRepository,
            DocumentUserRepository,
        )

        self.store = DocumentStore(path)
        self._task_repo = DocumentTaskRepository(self.store)
        self._user_repo = DocumentUserRepository(self.store)

    def get_task_repository(self) -> TaskRepository:
        return self._task_repo

    def get_user_repository(self) -> UserRepository:
        return self._user_repo

    @property
    def storage_type(self) -> str:
        return "document"


class StrategyContext:
    """
    Strategy context that provides access to all repositories.

    Usage:
        context = StrategyContext(SqliteStrategy(db_path="/path/to/db"))
        service = TaskService(context.task_repository, context.user_repository)
    """

    def __init__(self, strategy: StorageStrategy):
        self._strategy = strategy

    @property
    def task_repository(self) -> TaskRepository:
        """Get task repository from current strategy."""
        return self._strategy.get_task_repository()

    @property
    def user_repository(self) -> UserRepository:
        """Get identity repository from current strategy."""
        return self._strategy.get_user_repository()

    @property
    def storage_type(self) -> str:
        """Get storage type (for logging/debugging only)."""
        return self._strategy.storage_type

    @property
    def strategy(self) -> StorageStrategy:
        """Get underlying strategy."""
        return self._strategy
