"""SQLite implementation of UserRepository."""

from __future__ import annotations

import sqlite3

from taskshare.adapters.sqlite.connection import get_connection
from taskshare.adapters.sqlite.utils import now_iso, parse_datetime, row_to_dict, to_iso
from taskshare.exceptions import StorageError
from taskshare.models import User
from taskshare.repositories import UserRepository


class SqliteUserRepository(UserRepository):
    """SQLite implementation of identity repository."""

    def __init__(
        self,
        db_path: str | None = None,
        connection: sqlite3.Connection | None = None,
    ):
        self.db_path = db_path
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path or ":memory:")
        return self._connection

    async def upsert(self, user: User) -> User:
        """Insert or update an identity by id."""
        try:
            self.connection.execute(
                """INSERT INTO users (id, email, name, is_active, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                       email = excluded.email,
                       name = excluded.name,
                       is_active = excluded.is_active,
                       updated_at = excluded.updated_at""",
                (
                    user.id,
                    user.email,
                    user.name,
                    user.is_active,
                    to_iso(user.created_at),
                    to_iso(user.updated_at),
                ),
            )
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageError(f"Failed to save user {user.email}: {e}") from e

        stored = await self.get(user.id)
        if stored is None:
            raise StorageError(f"User {user.email} vanished after save")
        return stored

    async def get(self, user_id: str) -> User | None:
        """Get an identity by id."""
        return self._fetch_one("SELECT * FROM users WHERE id = ?", user_id)

    async def find_by_email(self, email: str) -> User | None:
        """Get an identity by email."""
        return self._fetch_one(
            "SELECT * FROM users WHERE email = ?", email.strip().lower()
        )

    async def list_all(self) -> list[User]:
        """List every identity ordered by email."""
        try:
            rows = self.connection.execute(
                "SELECT * FROM users ORDER BY email"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list users: {e}") from e
        return [self._row_to_user(row) for row in rows]

    async def find_by_query(
        self, query: str, exclude_id: str | None = None, limit: int = 10
    ) -> list[User]:
        """Substring match on name or email among active identities."""
        needle = query.strip().lower()
        try:
            rows = self.connection.execute(
                """SELECT * FROM users
                   WHERE is_active = 1
                     AND id != ?
                     AND (instr(lower(name), ?) > 0 OR instr(email, ?) > 0)
                   ORDER BY email
                   LIMIT ?""",
                (exclude_id or "", needle, needle, limit),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to search users: {e}") from e
        return [self._row_to_user(row) for row in rows]

    async def set_active(self, user_id: str, active: bool) -> User | None:
        """Flip the is_active flag."""
        try:
            cursor = self.connection.execute(
                "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
                (active, now_iso(), user_id),
            )
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise StorageError(f"Failed to update user {user_id}: {e}") from e
        if cursor.rowcount == 0:
            return None
        return await self.get(user_id)

    def _fetch_one(self, query: str, value: str) -> User | None:
        try:
            row = self.connection.execute(query, (value,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read user {value}: {e}") from e
        return self._row_to_user(row) if row else None

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        data = row_to_dict(row)
        data["is_active"] = bool(data["is_active"])
        data["created_at"] = parse_datetime(data["created_at"])
        data["updated_at"] = parse_datetime(data["updated_at"])
        return User(**data)
