"""Document adapter module - JSON document store implementation."""

from taskshare.adapters.document.store import DocumentStore
from taskshare.adapters.document.task_repository import DocumentTaskRepository
from taskshare.adapters.document.user_repository import DocumentUserRepository

__all__ = [
    "DocumentStore",
    "DocumentTaskRepository",
    "DocumentUserRepository",
]
