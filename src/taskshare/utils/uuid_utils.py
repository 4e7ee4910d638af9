"""UUID helpers: generation, short display and prefix resolution."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskshare.models import Task

# Relaxed UUID pattern (any version)
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

MIN_PREFIX_LENGTH = 4


def generate_uuid() -> str:
    """Generate a new UUID4 as string."""
    return str(uuid.uuid4())


def is_full_uuid(value: str) -> bool:
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def shorten_uuid(value: str, length: int = 8) -> str:
    """First ``length`` characters of an id, for list displays."""
    return value[:length]


def resolve_task_id(
    short_or_full_id: str, tasks: Iterable[Task], min_length: int = MIN_PREFIX_LENGTH
) -> str:
    """Resolve a full id or unique prefix against a set of tasks.

    Raises:
        ValueError: If the prefix is too short, unknown or ambiguous
    """
    key = short_or_full_id.lower().strip()
    if is_full_uuid(key):
        return key
    if len(key) < min_length:
        raise ValueError(
            f"ID must be at least {min_length} characters. Got: {key} ({len(key)} chars)"
        )

    matches = [t for t in tasks if t.id.startswith(key)]
    if not matches:
        raise ValueError(f"Task not found: {key}")
    if len(matches) > 1:
        shown = ", ".join(shorten_uuid(t.id) for t in matches[:5])
        if len(matches) > 5:
            shown += f", ... ({len(matches)} total)"
        raise ValueError(f"Ambiguous ID '{key}' matches {len(matches)} tasks: {shown}")
    return matches[0].id
