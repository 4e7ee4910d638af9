"""Repository interfaces for taskshare.

This package contains abstract base classes (ABCs) that define the contracts
for data persistence operations. These are the "Ports" in the Hexagonal Architecture.

Implementations (Adapters) are in:
- taskshare.adapters.sqlite (relational storage)
- taskshare.adapters.document (JSON document storage)
"""

from .repository import UPDATABLE_TASK_FIELDS, TaskRepository, UserRepository

__all__ = [
    "TaskRepository",
    "UserRepository",
    "UPDATABLE_TASK_FIELDS",
]
