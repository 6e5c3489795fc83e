"""Read-time upgrades of stored records."""

from .migration_001_multi_activity import (
    LEGACY_ACTIVITY,
    LEGACY_UNIT,
    MigrationResult,
    migrate_challenge,
    migrate_log,
)

__all__ = [
    "LEGACY_ACTIVITY",
    "LEGACY_UNIT",
    "MigrationResult",
    "migrate_challenge",
    "migrate_log",
]
