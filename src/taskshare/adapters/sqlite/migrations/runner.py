"""Forward-only schema migrations for the relational task store.

Applied versions are recorded in ``schema_version``; each migration runs in
its own transaction together with its bookkeeping row.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from taskshare.exceptions import StorageError
from taskshare.models.core import utcnow

_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        description TEXT NOT NULL,
        applied_at TEXT NOT NULL
    )
"""


@dataclass(frozen=True)
class Migration:
    """A numbered batch of DDL statements."""

    version: int
    description: str
    statements: Sequence[str]

    def up(self, connection: sqlite3.Connection) -> None:
        for statement in self.statements:
            connection.execute(statement)


class MigrationRunner:
    """Applies pending migrations to one connection."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection
        with self.connection:
            self.connection.execute(_VERSION_TABLE)

    def get_current_version(self) -> int:
        """Highest applied version, 0 for an empty database."""
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    def apply(self, migration: Migration) -> None:
        """Apply one migration; it must be newer than the current version.

        Raises:
            StorageError: If the version is stale or a statement fails
        """
        current = self.get_current_version()
        if migration.version <= current:
            raise StorageError(
                f"Migration {migration.version} is not newer than schema version {current}"
            )
        try:
            with self.connection:
                migration.up(self.connection)
                self.connection.execute(
                    "INSERT INTO schema_version (version, description, applied_at)"
                    " VALUES (?, ?, ?)",
                    (migration.version, migration.description, utcnow().isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Migration {migration.version} failed: {e}") from e

    def run_migrations(self, migrations: Iterable[Migration]) -> int:
        """Apply every migration newer than the schema; returns how many ran."""
        current = self.get_current_version()
        pending = sorted(
            (m for m in migrations if m.version > current), key=lambda m: m.version
        )
        for migration in pending:
            self.apply(migration)
        return len(pending)

    def get_migration_history(self) -> list[dict]:
        rows = self.connection.execute(
            "SELECT version, description, applied_at FROM schema_version ORDER BY version"
        )
        return [
            {"version": row[0], "description": row[1], "applied_at": row[2]} for row in rows
        ]
