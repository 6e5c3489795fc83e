"""
Conversion between typed entities and the store's flat representation.

Challenges are stored as string hashes with camelCase field names, log
entries as compact JSON members of a sorted set, and cached metrics as
string hashes. Everything above this module only sees the dataclasses in
``models.challenge``; malformed records surface as StoreError.
"""

import json
from typing import Dict, Optional, Tuple

from ..exceptions import StoreError
from ..models.challenge import ActivityMetrics, Challenge, DailyLog
from .migrations import migrate_log


def encode_challenge(challenge: Challenge) -> Dict[str, str]:
    """Flatten a challenge into a string hash.

    ``completedAt`` is omitted until set; a missing email is stored as an
    empty string so that clearing it overwrites the old value.
    """
    data = {
        "id": challenge.id,
        "duration": str(challenge.duration),
        "startDate": challenge.start_date,
        "status": challenge.status.value,
        "createdAt": str(challenge.created_at),
        "timezone": challenge.timezone,
        "email": challenge.email or "",
        "activities": json.dumps(list(challenge.activities)),
        "activityUnits": json.dumps(
            {name: unit.value for name, unit in challenge.activity_units.items()}
        ),
    }
    if challenge.completed_at is not None:
        data["completedAt"] = str(challenge.completed_at)
    return data


def decode_challenge(raw: Dict[str, str]) -> Challenge:
    """Build a Challenge from an already-migrated string hash."""
    try:
        completed_at = raw.get("completedAt")
        return Challenge(
            id=raw["id"],
            duration=int(raw["duration"]),
            start_date=raw["startDate"],
            status=raw.get("status", "active"),
            created_at=int(raw.get("createdAt", 0)),
            timezone=raw.get("timezone") or "UTC",
            activities=json.loads(raw["activities"]),
            activity_units=json.loads(raw.get("activityUnits") or "{}"),
            completed_at=int(completed_at) if completed_at else None,
            email=raw.get("email") or None,
        )
    except (KeyError, ValueError, TypeError) as e:
        raise StoreError(f"Malformed challenge record: {e}", operation="decode_challenge") from e


def encode_log(log: DailyLog) -> str:
    """Serialize a log entry as a sorted-set member."""
    return json.dumps(log.to_dict(), separators=(",", ":"))


def decode_log(member: str) -> DailyLog:
    """Parse a sorted-set member, upgrading legacy entries on the way."""
    try:
        data = migrate_log(json.loads(member)).data
        return DailyLog(
            date=data["date"],
            activity=data["activity"],
            reps=int(data["reps"]),
            timestamp=int(data.get("timestamp", 0)),
            timezone=data.get("timezone") or "UTC",
        )
    except (KeyError, ValueError, TypeError) as e:
        raise StoreError(f"Malformed log entry: {e}", operation="decode_log") from e


def encode_metrics(metrics: ActivityMetrics, computed_for: str) -> Dict[str, str]:
    """Flatten metrics for caching, tagged with the date they were computed for."""
    return {
        "activity": metrics.activity,
        "currentDay": str(metrics.current_day),
        "streak": str(metrics.streak),
        "personalBest": str(metrics.personal_best),
        "totalReps": str(metrics.total_reps),
        "daysLogged": str(metrics.days_logged),
        "daysMissed": str(metrics.days_missed),
        "completionRate": str(metrics.completion_rate),
        "calculatedAt": str(metrics.calculated_at),
        "computedFor": computed_for,
    }


def decode_metrics(raw: Dict[str, str]) -> Tuple[Optional[ActivityMetrics], Optional[str]]:
    """
    Read a cached metrics hash.

    Returns:
        (metrics, computed_for), or (None, None) when the entry is incomplete
    """
    try:
        metrics = ActivityMetrics(
            activity=raw["activity"],
            current_day=int(raw["currentDay"]),
            streak=int(raw["streak"]),
            personal_best=int(raw["personalBest"]),
            total_reps=int(raw["totalReps"]),
            days_logged=int(raw["daysLogged"]),
            days_missed=int(raw["daysMissed"]),
            completion_rate=int(raw["completionRate"]),
            calculated_at=int(raw["calculatedAt"]),
        )
    except (KeyError, ValueError):
        return None, None
    return metrics, raw.get("computedFor")
