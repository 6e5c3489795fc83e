"""Data models for challenges, logs and derived metrics."""

from .challenge import (
    ActivityMetrics,
    ActivityUnit,
    Challenge,
    ChallengeStatus,
    DailyLog,
    LogOutcome,
    LogStatus,
    DEFAULT_UNIT,
    MIN_DURATION,
    MAX_DURATION,
    MAX_ACTIVITIES,
    MIN_REPS,
    MAX_REPS,
)

__all__ = [
    "ActivityMetrics",
    "ActivityUnit",
    "Challenge",
    "ChallengeStatus",
    "DailyLog",
    "LogOutcome",
    "LogStatus",
    "DEFAULT_UNIT",
    "MIN_DURATION",
    "MAX_DURATION",
    "MAX_ACTIVITIES",
    "MIN_REPS",
    "MAX_REPS",
]
