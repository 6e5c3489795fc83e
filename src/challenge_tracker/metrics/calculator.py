"""
Progress metrics for challenges.

Every function here is pure: it takes a challenge (or its duration and start
date) plus a collection of daily logs and returns numbers. Callers filter the
logs to one activity first. ``today`` can be passed explicitly; it defaults to
the host's local calendar date.

Metrics:
- current day: 1-indexed position of today within the challenge, clamped
  to [1, duration]
- streak: consecutive non-zero days ending today (or yesterday, if today
  has no non-zero entry yet)
- personal best / total / days logged / days missed / completion rate
"""

import math
from typing import Dict, Iterable, List, Optional

from ..models.challenge import ActivityMetrics, Challenge, DailyLog
from ..utils import dates


def calculate_current_day(challenge: Challenge, today: Optional[str] = None) -> int:
    """
    Current day number of the challenge.

    Day 1 is the start date itself. The value never drops below 1 and never
    exceeds the duration, even long after the challenge period has elapsed.
    """
    today = today or dates.today()
    current_day = dates.days_between(challenge.start_date, today) + 1
    return min(max(current_day, 1), challenge.duration)


def _latest_per_date(logs: Iterable[DailyLog]) -> Dict[str, DailyLog]:
    """Index logs by date, keeping the most recently written entry per date."""
    by_date: Dict[str, DailyLog] = {}
    for log in logs:
        existing = by_date.get(log.date)
        if existing is None or log.timestamp >= existing.timestamp:
            by_date[log.date] = log
    return by_date


def calculate_streak(logs: Iterable[DailyLog], today: Optional[str] = None) -> int:
    """
    Count consecutive days with a non-zero value.

    The walk is anchored on today when today already has a non-zero entry,
    otherwise on yesterday, so a day that has not been logged yet does not
    break the streak. From the anchor it steps back one calendar day at a
    time and stops at the first date that has no entry or has a zero entry.
    """
    by_date = _latest_per_date(logs)
    if not by_date:
        return 0

    today = today or dates.today()
    todays_log = by_date.get(today)
    if todays_log is not None and todays_log.reps != 0:
        expected = today
    else:
        expected = dates.previous_day(today)

    streak = 0
    while True:
        log = by_date.get(expected)
        if log is None or log.reps == 0:
            break
        streak += 1
        expected = dates.previous_day(expected)

    return streak


def calculate_personal_best(logs: Iterable[DailyLog]) -> int:
    """Highest single-entry value, or 0 when nothing has been logged."""
    return max((log.reps for log in logs), default=0)


def calculate_total_reps(logs: Iterable[DailyLog]) -> int:
    """Sum of all logged values."""
    return sum(log.reps for log in logs)


def calculate_days_logged(logs: Iterable[DailyLog]) -> int:
    """Number of entries, zero-valued ones included."""
    return sum(1 for _ in logs)


def calculate_days_missed(current_day: int, days_logged: int) -> int:
    """Elapsed days without an entry."""
    return max(0, current_day - days_logged)


def calculate_completion_rate(days_logged: int, current_day: int) -> int:
    """
    Percentage of elapsed days that have an entry.

    Rounded half up to a whole percent; 0 when no day has elapsed.
    """
    if current_day == 0:
        return 0
    return int(math.floor(100 * days_logged / current_day + 0.5))


def calculate_metrics(
    challenge: Challenge,
    logs: List[DailyLog],
    activity: str,
    today: Optional[str] = None,
) -> ActivityMetrics:
    """Compute every metric for an already-filtered list of logs."""
    today = today or dates.today()
    current_day = calculate_current_day(challenge, today)
    days_logged = calculate_days_logged(logs)

    return ActivityMetrics(
        activity=activity,
        current_day=current_day,
        streak=calculate_streak(logs, today),
        personal_best=calculate_personal_best(logs),
        total_reps=calculate_total_reps(logs),
        days_logged=days_logged,
        days_missed=calculate_days_missed(current_day, days_logged),
        completion_rate=calculate_completion_rate(days_logged, current_day),
        calculated_at=dates.now_ms(),
    )


def calculate_activity_metrics(
    challenge: Challenge,
    all_logs: Iterable[DailyLog],
    activity: str,
    today: Optional[str] = None,
) -> ActivityMetrics:
    """Metrics for one activity, filtering ``all_logs`` to that activity."""
    activity_logs = [log for log in all_logs if log.activity == activity]
    return calculate_metrics(challenge, activity_logs, activity, today)


def calculate_all_activity_metrics(
    challenge: Challenge,
    all_logs: Iterable[DailyLog],
    today: Optional[str] = None,
) -> Dict[str, ActivityMetrics]:
    """Metrics for every activity of the challenge, keyed by activity name."""
    all_logs = list(all_logs)
    today = today or dates.today()
    return {
        activity: calculate_activity_metrics(challenge, all_logs, activity, today)
        for activity in challenge.activities
    }
