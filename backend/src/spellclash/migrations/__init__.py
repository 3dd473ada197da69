from spellclash.migrations.registry import (
    KID_CREDENTIALS_MIGRATION,
    MigrationRegistry,
    MigrationStep,
    default_registry,
)
from spellclash.migrations.runner import (
    MigrationInfo,
    applied_migrations,
    get_migration_status,
    resolve_migrations_dir,
    run_migrations,
)

__all__ = [
    "KID_CREDENTIALS_MIGRATION",
    "MigrationInfo",
    "MigrationRegistry",
    "MigrationStep",
    "applied_migrations",
    "default_registry",
    "get_migration_status",
    "resolve_migrations_dir",
    "run_migrations",
]
