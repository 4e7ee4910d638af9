"""Task, identity and sharing data models."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
MAX_TAGS = 10
TAG_MAX_LENGTH = 30


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Priority level; ``rank`` orders high above low."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class Permission(str, Enum):
    """Access level an identity holds on a task."""

    NONE = "none"
    VIEW = "view"
    EDIT = "edit"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _check_tags(tags: list[str]) -> list[str]:
    cleaned = [tag.strip() for tag in tags]
    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"at most {MAX_TAGS} tags allowed")
    for tag in cleaned:
        if not 1 <= len(tag) <= TAG_MAX_LENGTH:
            raise ValueError(f"each tag must be 1-{TAG_MAX_LENGTH} characters")
    return cleaned


class User(BaseModel):
    """An authenticated identity.

    Attributes:
        id: Opaque unique identifier
        email: Sharing key, stored lower-cased
        name: Display name
        is_active: False once soft-deactivated; identities are never deleted
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    email: EmailStr
    name: str = ""
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ShareEntry(BaseModel):
    """One collaborator grant on a task.

    Attributes:
        user_id: Resolved identity of the collaborator
        permission: "view" or "edit"
        shared_at: When the grant was made or last refreshed
    """

    user_id: str
    permission: Permission
    shared_at: datetime

    @field_validator("permission")
    @classmethod
    def grantable(cls, v: Permission) -> Permission:
        if v == Permission.NONE:
            raise ValueError("permission must be view or edit")
        return v


class Task(BaseModel):
    """Task model representing a complete task entity.

    ``completed`` is derived from ``status`` and never stored.

    Attributes:
        id: Unique identifier, immutable
        title: Short summary (3-200 characters)
        description: Optional details (up to 1000 characters)
        status: pending, in_progress or completed
        priority: low, medium or high
        due_date: Optional due timestamp
        tags: Free-form labels
        owner_id: Identity of the creator, immutable
        share_list: Collaborator grants, unique per identity
        created_at: Creation timestamp
        updated_at: Last update timestamp
        completed_at: When status last became completed
        version: Incremented on every write, used for optimistic locking
    """

    id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    owner_id: str
    share_list: list[ShareEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    version: int = Field(default=1, ge=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def share_entry(self, user_id: str) -> ShareEntry | None:
        """Return the first share entry for ``user_id``, if any."""
        for entry in self.share_list:
            if entry.user_id == user_id:
                return entry
        return None


class TaskCreate(BaseModel):
    """Validated input for a new task."""

    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _check_tags(v)


class TaskUpdate(BaseModel):
    """Partial update of a task's content fields.

    Only fields explicitly set are applied (``model_dump(exclude_unset=True)``),
    so ``description=None`` clears the description while an omitted
    description leaves it alone.
    """

    title: str | None = Field(
        default=None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH
    )
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _check_tags(v)


# Fields an "edit" collaborator may change; the owner may change any.
EDITOR_FIELDS = frozenset({"description", "status", "priority", "due_date", "tags"})


SortOrder = Literal[
    "created_at:asc",
    "created_at:desc",
    "due_date:asc",
    "priority:desc",
    "updated_at:desc",
    "title:asc",
]


class TaskFilters(BaseModel):
    """Filters for listing the tasks visible to an identity.

    Attributes:
        status: Exact status match
        priority: Exact priority match
        search: Case-insensitive substring over title and description
        due: "today" or "overdue"
        sort: Sort field and direction
        limit: Maximum number of results
        offset: Pagination offset
    """

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    search: str | None = None
    due: Literal["today", "overdue"] | None = None
    sort: SortOrder = "created_at:desc"
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class AccessDecision(BaseModel):
    """Outcome of resolving an identity's access to a task."""

    can_access: bool
    permission: Permission


class RecipientWarning(BaseModel):
    """A share target that could not be granted access."""

    target: str
    reason: str


class ShareResult(BaseModel):
    """Outcome of a share call: the persisted task plus non-fatal warnings."""

    task: Task
    new_recipients: list[str] = Field(default_factory=list)
    updated_recipients: list[str] = Field(default_factory=list)
    warnings: list[RecipientWarning] = Field(default_factory=list)


class Collaborator(BaseModel):
    """A share entry joined with the collaborator's identity details."""

    user_id: str
    email: str | None = None
    name: str | None = None
    permission: Permission
    shared_at: datetime


class TaskPage(BaseModel):
    """One page of a filtered task listing with pagination metadata.

    Attributes:
        tasks: Tasks on this page
        total: Matching tasks across all pages
        limit: Page size (None means everything after ``offset``)
        offset: Index of the first task on this page
    """

    tasks: list[Task]
    total: int
    limit: int | None = None
    offset: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        if not self.limit:
            return 1 if self.total else 0
        return math.ceil(self.total / self.limit)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.offset + len(self.tasks) < self.total

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_prev(self) -> bool:
        return self.offset > 0


class TaskStats(BaseModel):
    """Counts over the tasks visible to an identity."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
