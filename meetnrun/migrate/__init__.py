from meetnrun.migrate.engine import AlembicMigrator, MigrationState, Migrator
from meetnrun.migrate.handler import MigrateHandler, MigrationResult

__all__ = [
    "AlembicMigrator",
    "MigrateHandler",
    "MigrationResult",
    "MigrationState",
    "Migrator",
]
