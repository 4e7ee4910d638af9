"""SQLite implementation of TaskRepository."""

from __future__ import annotations

import sqlite3
from typing import Any

from taskshare.adapters.sqlite.connection import get_connection
from taskshare.adapters.sqlite.utils import (
    dump_tags,
    load_tags,
    now_iso,
    parse_datetime,
    row_to_dict,
    to_iso,
)
from taskshare.exceptions import ConflictError, StorageError
from taskshare.models import ShareEntry, Task
from taskshare.repositories import UPDATABLE_TASK_FIELDS, TaskRepository
from taskshare.utils.logger import get_logger

logger = get_logger().getChild("sqlite")


class SqliteTaskRepository(TaskRepository):
    """SQLite implementation of task repository."""

    def __init__(
        self,
        db_path: str | None = None,
        connection: sqlite3.Connection | None = None,
    ):
        """Initialize SQLite task repository.

        Args:
            db_path: Optional database file path, used when no connection is given.
            connection: Optional open connection shared with other repositories.
        """
        self.db_path = db_path
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path or ":memory:")
        return self._connection

    async def insert(self, task: Task) -> Task:
        """Insert a new task with its share grants."""
        try:
            self.connection.execute(
                """INSERT INTO tasks (
                    id, title, description, status, priority, due_date, tags,
                    owner_id, created_at, updated_at, completed_at, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    task.id,
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    to_iso(task.due_date),
                    dump_tags(task.tags),
                    task.owner_id,
                    to_iso(task.created_at),
                    to_iso(task.updated_at),
                    to_iso(task.completed_at),
                    task.version,
                ),
            )
            self._set_shares(task.id, task.share_list)
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageError(f"Failed to insert task {task.id}: {e}") from e

        logger.debug("inserted task %s", task.id)
        return await self._require(task.id)

    async def find_by_id(self, task_id: str) -> Task | None:
        """Get a live task by ID."""
        try:
            row = self.connection.execute(
                "SELECT * FROM tasks WHERE id = ? AND deleted_at IS NULL",
                (task_id,),
            ).fetchone()
            if not row:
                return None
            return self._row_to_task(row)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read task {task_id}: {e}") from e

    async def find_by_owner_or_shared_with(self, user_id: str) -> list[Task]:
        """List live tasks owned by or shared with ``user_id``."""
        query = """
            SELECT DISTINCT t.* FROM tasks t
            LEFT JOIN task_shares s ON s.task_id = t.id
            WHERE t.deleted_at IS NULL AND (t.owner_id = ? OR s.user_id = ?)
        """
        try:
            rows = self.connection.execute(query, (user_id, user_id)).fetchall()
            return [self._row_to_task(row) for row in rows]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list tasks for {user_id}: {e}") from e

    async def update(
        self,
        task_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Task | None:
        """Compare-and-set update of a live task."""
        unknown = set(changes) - UPDATABLE_TASK_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")

        try:
            row = self.connection.execute(
                "SELECT version FROM tasks WHERE id = ? AND deleted_at IS NULL",
                (task_id,),
            ).fetchone()
            if not row:
                return None
            current_version = row["version"]
            if expected_version is not None and current_version != expected_version:
                raise ConflictError(task_id, expected_version, current_version)

            set_parts = []
            params: list[Any] = []
            for key, value in changes.items():
                if key == "share_list":
                    continue
                set_parts.append(f"{key} = ?")
                params.append(self._column_value(key, value))

            set_parts.append("updated_at = ?")
            set_parts.append("version = version + 1")
            params.append(now_iso())

            query = (
                f"UPDATE tasks SET {', '.join(set_parts)} "
                "WHERE id = ? AND version = ? AND deleted_at IS NULL"
            )
            params.extend([task_id, current_version])
            cursor = self.connection.execute(query, params)
            if cursor.rowcount == 0:
                self.connection.rollback()
                raise ConflictError(task_id, expected_version or current_version, None)

            if "share_list" in changes:
                self.connection.execute(
                    "DELETE FROM task_shares WHERE task_id = ?", (task_id,)
                )
                self._set_shares(task_id, changes["share_list"])

            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageError(f"Failed to update task {task_id}: {e}") from e

        return await self.find_by_id(task_id)

    async def delete(self, task_id: str) -> bool:
        """Soft-delete a task."""
        try:
            cursor = self.connection.execute(
                """UPDATE tasks SET deleted_at = ?, version = version + 1
                   WHERE id = ? AND deleted_at IS NULL""",
                (now_iso(), task_id),
            )
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageError(f"Failed to delete task {task_id}: {e}") from e
        return cursor.rowcount > 0

    async def _require(self, task_id: str) -> Task:
        task = await self.find_by_id(task_id)
        if task is None:
            raise StorageError(f"Task {task_id} vanished after write")
        return task

    @staticmethod
    def _column_value(key: str, value: Any) -> Any:
        if key == "tags":
            return dump_tags(value)
        if key in ("due_date", "completed_at"):
            return to_iso(value)
        if key in ("status", "priority") and value is not None:
            return getattr(value, "value", value)
        return value

    def _set_shares(self, task_id: str, entries: list[ShareEntry]) -> None:
        """Insert share grants for a task (caller clears existing rows)."""
        for entry in entries:
            self.connection.execute(
                """INSERT INTO task_shares (task_id, user_id, permission, shared_at)
                   VALUES (?, ?, ?, ?)""",
                (
                    task_id,
                    entry.user_id,
                    entry.permission.value,
                    to_iso(entry.shared_at),
                ),
            )

    def _get_shares(self, task_id: str) -> list[ShareEntry]:
        cursor = self.connection.execute(
            """SELECT user_id, permission, shared_at FROM task_shares
               WHERE task_id = ? ORDER BY shared_at, user_id""",
            (task_id,),
        )
        return [
            ShareEntry(
                user_id=row["user_id"],
                permission=row["permission"],
                shared_at=parse_datetime(row["shared_at"]),
            )
            for row in cursor.fetchall()
        ]

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        task_dict = row_to_dict(row)
        task_dict.pop("deleted_at", None)
        task_dict["tags"] = load_tags(task_dict.get("tags"))
        task_dict["share_list"] = self._get_shares(task_dict["id"])
        for key in ("due_date", "created_at", "updated_at", "completed_at"):
            task_dict[key] = parse_datetime(task_dict.get(key))
        return Task(**task_dict)
