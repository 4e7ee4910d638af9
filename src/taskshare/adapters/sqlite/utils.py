"""Utility functions for SQLite adapter."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any


def now_iso() -> str:
    """Get current timestamp in ISO format.

    Returns:
        ISO format datetime string
    """
    return datetime.now(UTC).isoformat()


def to_iso(value: datetime | None) -> str | None:
    """Serialize a datetime for a DATETIME column, keeping None."""
    if value is None:
        return None
    return value.isoformat()


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert sqlite3.Row to dictionary.

    Args:
        row: sqlite3.Row object

    Returns:
        Dictionary with column names as keys
    """
    if row is None:
        return {}
    return dict(row)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse datetime from various formats.

    Args:
        value: String, datetime object, or None

    Returns:
        datetime object or None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    return None


def dump_tags(tags: list[str]) -> str:
    """Encode a tag list for the TEXT ``tags`` column."""
    return json.dumps(tags)


def load_tags(value: str | None) -> list[str]:
    """Decode the ``tags`` column; NULL reads as no tags."""
    if not value:
        return []
    return list(json.loads(value))
