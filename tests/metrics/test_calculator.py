"""Tests for challenge progress metrics."""

import pytest

from challenge_tracker.metrics import (
    calculate_activity_metrics,
    calculate_all_activity_metrics,
    calculate_completion_rate,
    calculate_current_day,
    calculate_days_logged,
    calculate_days_missed,
    calculate_metrics,
    calculate_personal_best,
    calculate_streak,
    calculate_total_reps,
)
from challenge_tracker.models import Challenge, ChallengeStatus, DailyLog


def make_challenge(duration=30, start_date="2025-01-01", activities=None) -> Challenge:
    return Challenge(
        id="c1",
        duration=duration,
        start_date=start_date,
        status=ChallengeStatus.ACTIVE,
        created_at=1,
        timezone="UTC",
        activities=activities or ["Push-ups"],
    )


def log(date, reps, activity="Push-ups", timestamp=1) -> DailyLog:
    return DailyLog(date=date, activity=activity, reps=reps, timestamp=timestamp)


class TestCurrentDay:

    def test_start_date_is_day_one(self):
        assert calculate_current_day(make_challenge(), "2025-01-01") == 1

    def test_counts_elapsed_days(self):
        assert calculate_current_day(make_challenge(), "2025-01-10") == 10

    def test_clamped_to_duration_after_end(self):
        challenge = make_challenge(duration=7)
        assert calculate_current_day(challenge, "2025-06-01") == 7

    def test_clamped_to_one_before_start(self):
        assert calculate_current_day(make_challenge(), "2024-12-25") == 1

    @pytest.mark.parametrize("today", ["2024-01-01", "2025-01-01", "2025-01-20", "2026-12-31"])
    def test_always_within_bounds(self, today):
        challenge = make_challenge(duration=14)
        assert 1 <= calculate_current_day(challenge, today) <= 14


class TestStreak:

    def test_empty_logs(self):
        assert calculate_streak([], "2025-01-15") == 0

    def test_counts_back_from_today(self):
        logs = [log("2025-01-13", 5), log("2025-01-14", 6), log("2025-01-15", 7)]
        assert calculate_streak(logs, "2025-01-15") == 3

    def test_unlogged_today_anchors_on_yesterday(self):
        logs = [log("2025-01-13", 5), log("2025-01-14", 6)]
        assert calculate_streak(logs, "2025-01-15") == 2

    def test_gap_breaks_streak(self):
        logs = [log("2025-01-11", 5), log("2025-01-13", 6), log("2025-01-14", 7)]
        assert calculate_streak(logs, "2025-01-15") == 2

    def test_zero_breaks_streak(self):
        logs = [log("2025-01-12", 5), log("2025-01-13", 0), log("2025-01-14", 7)]
        assert calculate_streak(logs, "2025-01-14") == 1

    def test_zero_today_falls_back_to_yesterday(self):
        logs = [log("2025-01-14", 5), log("2025-01-15", 0)]
        assert calculate_streak(logs, "2025-01-15") == 1

    def test_zero_yesterday_without_today_is_zero(self):
        logs = [log("2025-01-13", 5), log("2025-01-14", 0)]
        assert calculate_streak(logs, "2025-01-15") == 0

    def test_latest_entry_older_than_yesterday(self):
        logs = [log("2025-01-10", 5), log("2025-01-11", 5)]
        assert calculate_streak(logs, "2025-01-15") == 0

    def test_unordered_input(self):
        logs = [log("2025-01-15", 1), log("2025-01-13", 1), log("2025-01-14", 1)]
        assert calculate_streak(logs, "2025-01-15") == 3


class TestAggregates:

    def test_empty_logs_give_zeros(self):
        assert calculate_personal_best([]) == 0
        assert calculate_total_reps([]) == 0
        assert calculate_days_logged([]) == 0
        assert calculate_completion_rate(0, 0) == 0

    def test_personal_best_and_total(self):
        logs = [log("2025-01-01", 10), log("2025-01-02", 25), log("2025-01-03", 15)]
        assert calculate_personal_best(logs) == 25
        assert calculate_total_reps(logs) == 50

    def test_zero_entry_counts_as_logged(self):
        logs = [log("2025-01-01", 10), log("2025-01-02", 0)]
        assert calculate_days_logged(logs) == 2

    def test_days_missed_never_negative(self):
        assert calculate_days_missed(5, 3) == 2
        assert calculate_days_missed(3, 5) == 0

    @pytest.mark.parametrize(
        "logged,current,expected",
        [(1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100), (0, 5, 0), (0, 0, 0)],
    )
    def test_completion_rate_rounds_half_up(self, logged, current, expected):
        assert calculate_completion_rate(logged, current) == expected


class TestMetrics:

    def test_three_day_scenario(self):
        """10, 0, 12 over a three-day challenge."""
        challenge = make_challenge(duration=3, start_date="2025-01-10")
        logs = [log("2025-01-10", 10), log("2025-01-11", 0), log("2025-01-12", 12)]

        metrics = calculate_metrics(challenge, logs, "Push-ups", today="2025-01-12")

        assert metrics.current_day == 3
        assert metrics.days_logged == 3
        assert metrics.total_reps == 22
        assert metrics.personal_best == 12
        assert metrics.completion_rate == 100
        assert metrics.streak == 1
        assert metrics.days_missed == 0
        assert metrics.calculated_at > 0

    def test_empty_collection(self):
        challenge = make_challenge(start_date="2025-01-10")
        metrics = calculate_metrics(challenge, [], "Push-ups", today="2025-01-12")
        assert metrics.streak == 0
        assert metrics.personal_best == 0
        assert metrics.total_reps == 0
        assert metrics.days_logged == 0
        assert metrics.completion_rate == 0
        assert metrics.days_missed == 3

    def test_activity_metrics_filter_by_activity(self):
        challenge = make_challenge(activities=["Push-ups", "Plank"])
        logs = [
            log("2025-01-01", 20, "Push-ups"),
            log("2025-01-01", 90, "Plank"),
            log("2025-01-02", 30, "Push-ups"),
        ]

        pushups = calculate_activity_metrics(challenge, logs, "Push-ups", today="2025-01-02")
        plank = calculate_activity_metrics(challenge, logs, "Plank", today="2025-01-02")

        assert pushups.activity == "Push-ups"
        assert pushups.total_reps == 50
        assert pushups.streak == 2
        assert plank.total_reps == 90
        assert plank.days_logged == 1
        assert plank.completion_rate == 50

    def test_all_activity_metrics_keyed_by_activity(self):
        challenge = make_challenge(activities=["Push-ups", "Squats"])
        result = calculate_all_activity_metrics(
            challenge, iter([log("2025-01-01", 5, "Squats")]), today="2025-01-01"
        )
        assert list(result) == ["Push-ups", "Squats"]
        assert result["Squats"].total_reps == 5
        assert result["Push-ups"].total_reps == 0
