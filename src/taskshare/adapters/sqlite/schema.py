"""Database schema definitions for the relational task store.

Share grants live in their own table keyed by (task_id, user_id), which makes
"no duplicate collaborator" a primary-key constraint rather than a convention.
"""

from __future__ import annotations

# Users table - identities supplied by the identity provider
CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
)
"""

# Tasks table - main task entity
CREATE_TASKS_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_progress', 'completed')),
    priority TEXT NOT NULL DEFAULT 'medium'
        CHECK (priority IN ('low', 'medium', 'high')),
    due_date DATETIME,
    tags TEXT NOT NULL DEFAULT '[]',
    owner_id TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    completed_at DATETIME,
    deleted_at DATETIME,
    version INTEGER NOT NULL DEFAULT 1,
    FOREIGN KEY (owner_id) REFERENCES users(id)
)
"""

# Task-User share grants (many-to-many with a permission)
CREATE_TASK_SHARES_TABLE = """
CREATE TABLE IF NOT EXISTS task_shares (
    task_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    permission TEXT NOT NULL CHECK (permission IN ('view', 'edit')),
    shared_at DATETIME NOT NULL,
    PRIMARY KEY (task_id, user_id),
    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id)
)
"""

CREATE_TASK_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner_id, deleted_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date)",
    "CREATE INDEX IF NOT EXISTS idx_task_shares_user ON task_shares(user_id)",
]

CREATE_USER_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)",
]

# All table creation statements in order
ALL_TABLES = [
    CREATE_USERS_TABLE,
    CREATE_TASKS_TABLE,
    CREATE_TASK_SHARES_TABLE,
]

ALL_INDEXES = CREATE_TASK_INDEXES + CREATE_USER_INDEXES
