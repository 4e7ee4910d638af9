"""Schema migrations for the relational task store."""

from .m001_initial_schema import ALL_MIGRATIONS, initial_migration
from .runner import Migration, MigrationRunner

__all__ = ["ALL_MIGRATIONS", "Migration", "MigrationRunner", "initial_migration"]
