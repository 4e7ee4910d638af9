"""SQLite adapter module - Relational storage implementation."""

from taskshare.adapters.sqlite.connection import get_connection
from taskshare.adapters.sqlite.task_repository import SqliteTaskRepository
from taskshare.adapters.sqlite.user_repository import SqliteUserRepository

__all__ = [
    "SqliteTaskRepository",
    "SqliteUserRepository",
    "get_connection",
]
