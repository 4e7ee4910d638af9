"""taskshare domain models.

This package contains Pydantic models that represent the core domain entities:
identities, tasks with their share lists, listing filters and change events.
"""

from .core import (
    EDITOR_FIELDS,
    AccessDecision,
    Collaborator,
    Permission,
    RecipientWarning,
    ShareEntry,
    ShareResult,
    Task,
    TaskCreate,
    TaskFilters,
    TaskPage,
    TaskPriority,
    TaskStats,
    TaskStatus,
    TaskUpdate,
    User,
)
from .events import EventType, TaskEvent

__all__ = [
    # Task models
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "TaskPage",
    "TaskStats",
    "TaskStatus",
    "TaskPriority",
    "EDITOR_FIELDS",
    # Sharing models
    "Permission",
    "ShareEntry",
    "ShareResult",
    "RecipientWarning",
    "Collaborator",
    "AccessDecision",
    # Identity
    "User",
    # Events
    "EventType",
    "TaskEvent",
]
