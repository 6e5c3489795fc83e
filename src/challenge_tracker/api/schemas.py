"""Request models for the HTTP API."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ..models.challenge import (
    ActivityUnit,
    ChallengeStatus,
    MAX_ACTIVITIES,
    MAX_DURATION,
    MAX_REPS,
    MIN_DURATION,
    MIN_REPS,
)


ACTIVITY_NAME_MAX_LENGTH = 30


def validate_activity_name(name: str) -> str:
    """1-30 characters of letters, digits, spaces and hyphens (any script)."""
    if not 1 <= len(name) <= ACTIVITY_NAME_MAX_LENGTH:
        raise ValueError(f"Activity name must be 1-{ACTIVITY_NAME_MAX_LENGTH} characters")
    if not all(ch.isalnum() or ch.isspace() or ch == "-" for ch in name):
        raise ValueError("Activity name must contain only letters, numbers, spaces, and hyphens")
    return name


def validate_activity_list(activities: List[str]) -> List[str]:
    if not 1 <= len(activities) <= MAX_ACTIVITIES:
        raise ValueError(f"Between 1 and {MAX_ACTIVITIES} activities are required")
    for name in activities:
        validate_activity_name(name)
    lowered = [name.lower() for name in activities]
    if len(set(lowered)) != len(lowered):
        raise ValueError("Activity names must be unique (case-insensitive)")
    return activities


def validate_date_string(value: str) -> str:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return value


class CreateChallengeRequest(BaseModel):
    """Request model for starting a challenge."""
    duration: int = Field(..., ge=MIN_DURATION, le=MAX_DURATION, description="Length in days")
    activities: List[str] = Field(default_factory=lambda: ["Push-ups"])
    activity_units: Dict[str, ActivityUnit] = Field(default_factory=dict)
    email: Optional[EmailStr] = None
    timezone: str = Field(default="UTC", min_length=1, max_length=64)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("activities")
    @classmethod
    def validate_activities(cls, v: List[str]) -> List[str]:
        return validate_activity_list(v)

    @model_validator(mode="after")
    def units_name_known_activities(self) -> "CreateChallengeRequest":
        unknown = set(self.activity_units) - set(self.activities)
        if unknown:
            raise ValueError(f"Units given for unknown activities: {', '.join(sorted(unknown))}")
        return self


class LogEntry(BaseModel):
    activity: str
    reps: int = Field(..., ge=MIN_REPS, le=MAX_REPS)

    @field_validator("activity")
    @classmethod
    def validate_activity(cls, v: str) -> str:
        return validate_activity_name(v)


class LogActivitiesRequest(BaseModel):
    """Request model for logging one or more activities for a date."""
    logs: List[LogEntry] = Field(..., min_length=1, max_length=MAX_ACTIVITIES)
    date: Optional[str] = Field(None, description="Date in YYYY-MM-DD format; defaults to today")
    edit: bool = False

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string(v) if v is not None else v


class SendLinkRequest(BaseModel):
    email: EmailStr


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class AdminUpdateChallengeRequest(BaseModel):
    """Partial update of a challenge; omitted fields stay unchanged."""
    duration: Optional[int] = Field(None, ge=MIN_DURATION, le=MAX_DURATION)
    status: Optional[ChallengeStatus] = None
    email: Optional[str] = None
    activities: Optional[List[str]] = None
    activity_units: Optional[Dict[str, ActivityUnit]] = None

    @field_validator("activities")
    @classmethod
    def validate_activities(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return validate_activity_list(v) if v is not None else v


class AdminUpdateLogRequest(BaseModel):
    """Edit or delete the log entry identified by ``timestamp``."""
    timestamp: int
    date: Optional[str] = None
    activity: Optional[str] = None
    reps: Optional[int] = Field(None, ge=MIN_REPS, le=MAX_REPS)
    delete: bool = False

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string(v) if v is not None else v
