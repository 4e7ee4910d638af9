"""Migration 001: users, tasks and task_shares with their indexes."""

from taskshare.adapters.sqlite import schema

from .runner import Migration

initial_migration = Migration(
    version=1,
    description="Create users, tasks and task_shares tables",
    statements=(*schema.ALL_TABLES, *schema.ALL_INDEXES),
)

ALL_MIGRATIONS = [initial_migration]
