"""
Challenge use cases for the HTTP layer and the CLI.

The repository reports business conditions as typed outcomes (None,
LogOutcome). This service checks the rules that belong to the request
(challenge is active, activity belongs to it, date is inside the challenge
window) and turns every negative outcome into the matching
ChallengeTrackerError so routes can map it straight to a response.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..db.repositories.challenge_repository import ChallengeRepository
from ..exceptions import (
    AlreadyLoggedError,
    ChallengeNotActiveError,
    ChallengeNotFoundError,
    ChallengeTrackerError,
    ErrorCode,
    InvalidActivityError,
    InvalidDateError,
    LogNotFoundError,
    ValidationError,
)
from ..metrics import calculate_current_day
from ..models.challenge import (
    ActivityMetrics,
    Challenge,
    ChallengeStatus,
    DailyLog,
    LogStatus,
)
from ..utils import dates
from .notifier import EmailNotifier


logger = logging.getLogger(__name__)


@dataclass
class ChallengeView:
    """Everything the challenge dashboard shows."""
    challenge: Challenge
    current_day: int
    metrics: Dict[str, ActivityMetrics]
    logged_today: Dict[str, bool]
    yesterday_values: Dict[str, Optional[int]]

    def to_dict(self) -> dict:
        return {
            **self.challenge.to_dict(),
            "current_day": self.current_day,
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
            "has_logged_today": self.logged_today,
            "has_logged_all_today": all(self.logged_today.values()),
            "yesterday_values": self.yesterday_values,
        }


@dataclass
class LogResult:
    """Entries written by one log request and the state after them."""
    date: str
    logs: List[DailyLog]
    metrics: Dict[str, ActivityMetrics] = field(default_factory=dict)
    challenge_completed: bool = False

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "logs": [log.to_dict() for log in self.logs],
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
            "challenge_completed": self.challenge_completed,
        }


class ChallengeService:
    """Orchestrates the repository and the notifier."""

    def __init__(self, repository: ChallengeRepository, notifier: Optional[EmailNotifier] = None):
        self.repository = repository
        self.notifier = notifier

    def _require(self, challenge_id: str) -> Challenge:
        challenge = self.repository.get_challenge(challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id)
        return challenge

    # =========================================================================
    # Public challenge operations
    # =========================================================================

    def create_challenge(
        self,
        duration: int,
        activities: List[str],
        activity_units: Optional[Dict[str, str]] = None,
        email: Optional[str] = None,
        timezone: str = "UTC",
    ) -> Challenge:
        """Create a challenge and return it as stored."""
        challenge_id = self.repository.create_challenge(
            duration=duration,
            timezone=timezone,
            activities=activities,
            activity_units=activity_units,
            email=email,
        )
        return self._require(challenge_id)

    def get_challenge(self, challenge_id: str) -> Challenge:
        return self._require(challenge_id)

    def view_challenge(self, challenge_id: str) -> ChallengeView:
        """Challenge with per-activity metrics, today's status and yesterday's values."""
        challenge = self._require(challenge_id)
        today = self.repository.today()

        metrics = self.repository.get_all_activity_metrics(challenge_id) or {}
        logs = self.repository.get_all_logs(challenge_id)
        logged_today = {
            activity: any(log.date == today and log.activity == activity for log in logs)
            for activity in challenge.activities
        }
        yesterday_values = {}
        for activity in challenge.activities:
            log = self.repository.get_yesterday_log(challenge_id, activity)
            yesterday_values[activity] = log.reps if log else None

        return ChallengeView(
            challenge=challenge,
            current_day=calculate_current_day(challenge, today),
            metrics=metrics,
            logged_today=logged_today,
            yesterday_values=yesterday_values,
        )

    def get_logs(self, challenge_id: str) -> Tuple[Challenge, List[DailyLog]]:
        challenge = self._require(challenge_id)
        return challenge, self.repository.get_all_logs(challenge_id)

    def log_activities(
        self,
        challenge_id: str,
        entries: List[Tuple[str, int]],
        date: Optional[str] = None,
        edit: bool = False,
    ) -> LogResult:
        """
        Log several activities for one date.

        The whole batch is checked before anything is written: outside edit
        mode a single already-logged activity rejects every entry.

        Raises:
            ChallengeNotFoundError, ChallengeNotActiveError,
            InvalidActivityError, InvalidDateError, ValidationError,
            AlreadyLoggedError
        """
        challenge = self._require(challenge_id)
        if not challenge.is_active:
            raise ChallengeNotActiveError(challenge_id, challenge.status.value)

        if not entries:
            raise ValidationError("At least one activity must be logged", field="logs")

        names = [activity for activity, _ in entries]
        if len(set(names)) != len(names):
            raise ValidationError("Each activity can only be logged once per request", field="logs")
        for activity in names:
            if not challenge.has_activity(activity):
                raise InvalidActivityError(activity, allowed=challenge.activities)

        today = self.repository.today()
        log_date = date or today
        if not dates.is_valid_date(log_date):
            raise InvalidDateError(f"Invalid date '{log_date}', expected YYYY-MM-DD")
        if log_date < challenge.start_date or log_date > today:
            raise InvalidDateError(
                f"Date must be between {challenge.start_date} and {today}",
                details={"date": log_date},
            )

        if not edit:
            existing = {
                log.activity for log in self.repository.get_all_logs(challenge_id)
                if log.date == log_date
            }
            for activity in names:
                if activity in existing:
                    raise AlreadyLoggedError(activity, log_date)

        written = []
        for activity, reps in entries:
            outcome = self.repository.log_activity(
                challenge_id, activity, reps, target_date=log_date, edit_mode=edit
            )
            if outcome.status == LogStatus.NOT_FOUND:
                raise ChallengeNotFoundError(challenge_id)
            if outcome.status == LogStatus.ALREADY_LOGGED:
                raise AlreadyLoggedError(activity, log_date)
            written.append(outcome.log)

        metrics = self.repository.get_all_activity_metrics(challenge_id) or {}
        completed = self.repository.check_and_update_completion(challenge_id)

        return LogResult(
            date=log_date,
            logs=written,
            metrics=metrics,
            challenge_completed=completed,
        )

    def abandon_challenge(self, challenge_id: str) -> None:
        if not self.repository.abandon_challenge(challenge_id):
            raise ChallengeNotFoundError(challenge_id)

    def find_challenges_for_email(self, email: str) -> List[Challenge]:
        """Challenges registered to an email; raises when there are none."""
        challenges = self.repository.find_challenges_by_email(email)
        if not challenges:
            raise ChallengeTrackerError(
                message="No challenge found for this email address",
                code=ErrorCode.NOT_FOUND,
                status_code=404,
            )
        return challenges

    # =========================================================================
    # Notifications (run as background tasks)
    # =========================================================================

    async def notify_created(self, challenge: Challenge) -> None:
        if self.notifier is None or not challenge.email:
            return
        await self.notifier.send_challenge_created(challenge.email, challenge)

    async def notify_link_requested(self, email: str, challenges: List[Challenge]) -> None:
        if self.notifier is None:
            return
        for challenge in challenges:
            await self.notifier.send_link_requested(email, challenge)

    # =========================================================================
    # Admin operations
    # =========================================================================

    def list_challenges(
        self,
        status: Optional[ChallengeStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Challenge], int]:
        """One page of challenges, newest first, plus the total matching count."""
        filters = {"status": status} if status is not None else {}
        challenges = self.repository.get_all(limit=limit, offset=offset, **filters)
        return challenges, self.repository.count(**filters)

    def update_challenge(
        self,
        challenge_id: str,
        duration: Optional[int] = None,
        status: Optional[ChallengeStatus] = None,
        email: Optional[str] = None,
        activities: Optional[List[str]] = None,
        activity_units: Optional[Dict[str, str]] = None,
    ) -> Challenge:
        challenge = self.repository.update_challenge(
            challenge_id,
            duration=duration,
            status=status,
            email=email,
            activities=activities,
            activity_units=activity_units,
        )
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id)
        return challenge

    def delete_challenge(self, challenge_id: str) -> None:
        if not self.repository.delete_challenge(challenge_id):
            raise ChallengeNotFoundError(challenge_id)

    def update_log(
        self,
        challenge_id: str,
        timestamp: int,
        date: Optional[str] = None,
        activity: Optional[str] = None,
        reps: Optional[int] = None,
    ) -> DailyLog:
        """Edit the log entry identified by ``timestamp``."""
        challenge = self._require(challenge_id)
        if activity is not None and not challenge.has_activity(activity):
            raise InvalidActivityError(activity, allowed=challenge.activities)
        if date is not None and not dates.is_valid_date(date):
            raise InvalidDateError(f"Invalid date '{date}', expected YYYY-MM-DD")

        outcome = self.repository.update_log(
            challenge_id, timestamp, date=date, activity=activity, reps=reps
        )
        if outcome.status == LogStatus.NOT_FOUND:
            if outcome.challenge is None:
                raise ChallengeNotFoundError(challenge_id)
            raise LogNotFoundError(timestamp)
        if outcome.status == LogStatus.ALREADY_LOGGED:
            raise AlreadyLoggedError(outcome.log.activity, outcome.log.date)
        return outcome.log

    def delete_log(self, challenge_id: str, timestamp: int) -> DailyLog:
        outcome = self.repository.delete_log(challenge_id, timestamp)
        if outcome.status == LogStatus.NOT_FOUND:
            if outcome.challenge is None:
                raise ChallengeNotFoundError(challenge_id)
            raise LogNotFoundError(timestamp)
        return outcome.log

    def recalculate_metrics(self, challenge_id: str) -> Dict[str, ActivityMetrics]:
        metrics = self.repository.recalculate_metrics(challenge_id)
        if metrics is None:
            raise ChallengeNotFoundError(challenge_id)
        return metrics
