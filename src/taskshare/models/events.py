"""Change notification records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .core import Task, utcnow


class EventType(str, Enum):
    """Externally observable task events."""

    CREATED = "task_created"
    UPDATED = "task_updated"
    DELETED = "task_deleted"
    SHARED = "task_shared"


class TaskEvent(BaseModel):
    """Event record dispatched to each interested identity.

    Clients treat it as an invalidation signal and refetch, so the record
    carries a summary rather than the full task state.

    Attributes:
        type: Which mutation happened
        task_id: Affected task
        actor_id: Identity that performed the mutation
        summary: Short human-readable description
        occurred_at: When the event was built
        new_recipients: Identities newly granted access (task_shared only)
    """

    type: EventType
    task_id: str
    actor_id: str
    summary: str
    occurred_at: datetime = Field(default_factory=utcnow)
    new_recipients: list[str] = Field(default_factory=list)

    @classmethod
    def for_task(
        cls,
        event_type: EventType,
        task: Task,
        actor_id: str,
        new_recipients: list[str] | None = None,
    ) -> TaskEvent:
        summaries = {
            EventType.CREATED: f"Task '{task.title}' created",
            EventType.UPDATED: f"Task '{task.title}' updated",
            EventType.DELETED: f"Task '{task.title}' deleted",
            EventType.SHARED: f"Task '{task.title}' shared",
        }
        return cls(
            type=event_type,
            task_id=task.id,
            actor_id=actor_id,
            summary=summaries[event_type],
            new_recipients=list(new_recipients or []),
        )
