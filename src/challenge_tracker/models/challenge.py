"""Challenge, daily log and metrics data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ChallengeStatus(str, Enum):
    """Lifecycle states of a challenge."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ActivityUnit(str, Enum):
    """Units an activity can be measured in."""
    REPS = "reps"
    MINUTES = "minutes"
    SECONDS = "seconds"
    KM = "km"
    MILES = "miles"
    METERS = "meters"
    HOURS = "hours"


DEFAULT_UNIT = ActivityUnit.REPS

MIN_DURATION = 1
MAX_DURATION = 365
MAX_ACTIVITIES = 5
MIN_REPS = 0
MAX_REPS = 10_000


@dataclass
class Challenge:
    """
    One tracked commitment.

    ``id``, ``duration``, ``start_date`` and the identities in ``activities``
    never change after creation (admin edits aside).
    """
    id: str
    duration: int
    start_date: str
    status: ChallengeStatus
    created_at: int
    timezone: str
    activities: List[str]
    activity_units: Dict[str, ActivityUnit] = field(default_factory=dict)
    completed_at: Optional[int] = None
    email: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = ChallengeStatus(self.status)
        self.activity_units = {
            name: ActivityUnit(unit) for name, unit in self.activity_units.items()
        }

    @property
    def is_active(self) -> bool:
        return self.status == ChallengeStatus.ACTIVE

    def unit_for(self, activity: str) -> ActivityUnit:
        """Unit of an activity; missing entries default to reps."""
        return self.activity_units.get(activity, DEFAULT_UNIT)

    def has_activity(self, activity: str) -> bool:
        return activity in self.activities

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "duration": self.duration,
            "start_date": self.start_date,
            "status": self.status.value,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "timezone": self.timezone,
            "email": self.email,
            "activities": list(self.activities),
            "activity_units": {a: self.unit_for(a).value for a in self.activities},
        }


@dataclass
class DailyLog:
    """
    One recorded value for one activity on one calendar date.

    ``date`` decides which day the entry belongs to; ``timestamp`` is the
    write instant and doubles as the entry's identity for admin edits.
    """
    date: str
    activity: str
    reps: int
    timestamp: int
    timezone: str = "UTC"

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "activity": self.activity,
            "reps": self.reps,
            "timestamp": self.timestamp,
            "timezone": self.timezone,
        }


@dataclass
class ActivityMetrics:
    """Derived statistics for one activity of a challenge."""
    activity: str
    current_day: int
    streak: int
    personal_best: int
    total_reps: int
    days_logged: int
    days_missed: int
    completion_rate: int
    calculated_at: int

    def to_dict(self) -> dict:
        return {
            "activity": self.activity,
            "current_day": self.current_day,
            "streak": self.streak,
            "personal_best": self.personal_best,
            "total_reps": self.total_reps,
            "days_logged": self.days_logged,
            "days_missed": self.days_missed,
            "completion_rate": self.completion_rate,
            "calculated_at": self.calculated_at,
        }


class LogStatus(str, Enum):
    """Result tags for log writes."""
    LOGGED = "logged"
    ALREADY_LOGGED = "already_logged"
    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass
class LogOutcome:
    """
    Result of a log write.

    ``log`` is the entry written (or removed). ``challenge`` is set whenever
    the challenge existed, so a NOT_FOUND outcome with a challenge means the
    log entry itself was missing.
    """
    status: LogStatus
    log: Optional[DailyLog] = None
    challenge: Optional[Challenge] = None

    @property
    def ok(self) -> bool:
        return self.status in (LogStatus.LOGGED, LogStatus.DELETED)

    @classmethod
    def logged(cls, log: DailyLog, challenge: Optional[Challenge] = None) -> "LogOutcome":
        return cls(status=LogStatus.LOGGED, log=log, challenge=challenge)

    @classmethod
    def deleted(cls, log: DailyLog, challenge: Optional[Challenge] = None) -> "LogOutcome":
        return cls(status=LogStatus.DELETED, log=log, challenge=challenge)

    @classmethod
    def already_logged(cls, challenge: Optional[Challenge] = None) -> "LogOutcome":
        return cls(status=LogStatus.ALREADY_LOGGED, challenge=challenge)

    @classmethod
    def not_found(cls, challenge: Optional[Challenge] = None) -> "LogOutcome":
        return cls(status=LogStatus.NOT_FOUND, challenge=challenge)
