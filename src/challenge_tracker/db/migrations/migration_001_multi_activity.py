"""
Migration 001: Multi-activity records

Challenges created before multi-activity support stored a single push-up
counter: no ``activities`` list, no ``activityUnits`` map, and log entries
carrying ``pushups`` instead of ``reps`` and no ``activity`` name.

These functions upgrade a raw stored record to the current shape. They are
pure and idempotent: running them on an already-current record returns it
unchanged with no changed fields. The repository applies them on read.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List
import json


MIGRATION_VERSION = "001"
MIGRATION_NAME = "multi_activity"

LEGACY_ACTIVITY = "Push-ups"
LEGACY_UNIT = "reps"


@dataclass
class MigrationResult:
    """Upgraded record plus the names of the fields that were added."""
    data: Dict[str, Any]
    changed_fields: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


def migrate_challenge(raw: Dict[str, str]) -> MigrationResult:
    """
    Upgrade a stored challenge hash.

    Args:
        raw: Field map as read from the store

    Returns:
        MigrationResult whose ``data`` holds every original field plus
        ``activities`` / ``activityUnits`` when they were missing
    """
    data = dict(raw)
    changed = []

    if not data.get("activities"):
        data["activities"] = json.dumps([LEGACY_ACTIVITY])
        changed.append("activities")

    if not data.get("activityUnits"):
        activities = json.loads(data["activities"])
        data["activityUnits"] = json.dumps({name: LEGACY_UNIT for name in activities})
        changed.append("activityUnits")

    return MigrationResult(data=data, changed_fields=changed)


def migrate_log(raw: Dict[str, Any]) -> MigrationResult:
    """
    Upgrade a decoded log entry.

    Missing ``activity`` defaults to the legacy activity name; missing
    ``reps`` is backfilled from ``pushups`` (or 0 if neither is present).
    The deprecated ``pushups`` field is dropped.
    """
    data = dict(raw)
    changed = []

    if not data.get("activity"):
        data["activity"] = LEGACY_ACTIVITY
        changed.append("activity")

    if data.get("reps") is None:
        data["reps"] = data.get("pushups", 0) or 0
        changed.append("reps")

    data.pop("pushups", None)

    return MigrationResult(data=data, changed_fields=changed)
