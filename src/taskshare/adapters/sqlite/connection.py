"""Database connection setup for the relational task store.

Each strategy opens its own connection and hands it to its repositories; there
is no process-wide connection, so tests can run side by side on ``:memory:``.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from taskshare.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner
from taskshare.exceptions import StorageError

MEMORY = ":memory:"


def get_connection(db_path: str | Path = MEMORY) -> sqlite3.Connection:
    """Open and configure a connection, applying pending migrations.

    Provides:
    - Foreign key constraint enforcement
    - WAL mode for file databases
    - Automatic directory creation
    - Owner-only file permissions on first creation

    Args:
        db_path: Path to database file, or ":memory:"

    Returns:
        sqlite3.Connection with ``sqlite3.Row`` rows

    Raises:
        StorageError: If the database cannot be opened or migrated
    """
    in_memory = str(db_path) == MEMORY
    is_new_database = False

    try:
        if not in_memory:
            path = Path(db_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            is_new_database = not path.exists()

        connection = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            timeout=30.0,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        if not in_memory:
            connection.execute("PRAGMA journal_mode = WAL")

        if is_new_database:
            os.chmod(db_path, 0o600)

        MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
    except (sqlite3.Error, OSError) as e:
        raise StorageError(f"Failed to open database {db_path}: {e}") from e

    return connection
