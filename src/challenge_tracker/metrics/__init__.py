"""Challenge progress metrics calculation module."""

from .calculator import (
    calculate_current_day,
    calculate_streak,
    calculate_personal_best,
    calculate_total_reps,
    calculate_days_logged,
    calculate_days_missed,
    calculate_completion_rate,
    calculate_metrics,
    calculate_activity_metrics,
    calculate_all_activity_metrics,
)

__all__ = [
    "calculate_current_day",
    "calculate_streak",
    "calculate_personal_best",
    "calculate_total_reps",
    "calculate_days_logged",
    "calculate_days_missed",
    "calculate_completion_rate",
    "calculate_metrics",
    "calculate_activity_metrics",
    "calculate_all_activity_metrics",
]
