"""Key-value backed repository for challenges and their daily logs.

Key layout (owned exclusively by this module):

    challenge:{id}                      hash        the challenge record
    challenge:{id}:logs                 sorted set  JSON log entries, score YYYYMMDD
    challenge:{id}:metrics:{activity}   hash        cached ActivityMetrics

Every key belonging to a challenge carries a time-to-live of
``duration + grace_period_days`` days, set at creation and refreshed on
every log write. Once the store reclaims the keys the challenge is simply
not found.

Expected business conditions never raise: a missing challenge reads as
None/False and log writes return a LogOutcome. Store failures propagate as
StoreError.
"""

import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .base import Repository
from ..adapters import KeyValueAdapter
from ..codec import (
    decode_challenge,
    decode_log,
    decode_metrics,
    encode_challenge,
    encode_log,
    encode_metrics,
)
from ..connection import get_store
from ..migrations import LEGACY_ACTIVITY, migrate_challenge
from ...exceptions import InvalidDateError, ValidationError
from ...metrics import calculate_current_day, calculate_metrics
from ...models.challenge import (
    ActivityMetrics,
    ActivityUnit,
    Challenge,
    ChallengeStatus,
    DailyLog,
    LogOutcome,
    LogStatus,
    DEFAULT_UNIT,
    MIN_REPS,
    MAX_REPS,
)
from ...utils import dates


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def challenge_key(challenge_id: str) -> str:
    return f"challenge:{challenge_id}"


def logs_key(challenge_id: str) -> str:
    return f"challenge:{challenge_id}:logs"


def metrics_key(challenge_id: str, activity: str) -> str:
    return f"challenge:{challenge_id}:metrics:{activity}"


def _validate_reps(reps: int) -> None:
    if isinstance(reps, bool) or not isinstance(reps, int):
        raise ValidationError("Value must be a whole number", field="reps")
    if reps < MIN_REPS or reps > MAX_REPS:
        raise ValidationError(
            f"Value must be between {MIN_REPS} and {MAX_REPS}",
            field="reps",
            details={"value": reps},
        )


def _validate_date(value: str) -> None:
    if not dates.is_valid_date(value):
        raise InvalidDateError(f"Invalid date '{value}', expected YYYY-MM-DD")


class ChallengeRepository(Repository[Challenge]):
    """
    Persistence boundary for challenges, daily logs and cached metrics.

    Args:
        store: Adapter to use. Defaults to the process-wide store, resolved
            on first access.
        today: Callable returning today's date as YYYY-MM-DD.
        grace_period_days: Extra days records live past the duration.
        cache_metrics: Whether computed metrics are written to the store.
    """

    def __init__(
        self,
        store: Optional[KeyValueAdapter] = None,
        today: Callable[[], str] = dates.today,
        grace_period_days: int = 30,
        cache_metrics: bool = True,
    ):
        self._store = store
        self._today = today
        self.grace_period_days = grace_period_days
        self.cache_metrics = cache_metrics

    @property
    def store(self) -> KeyValueAdapter:
        if self._store is None:
            self._store = get_store()
        return self._store

    def today(self) -> str:
        """Today's date as seen by this repository."""
        return self._today()

    def ttl_seconds(self, duration: int) -> int:
        """Time-to-live for every key of a challenge with this duration."""
        return (duration + self.grace_period_days) * SECONDS_PER_DAY

    def _refresh_ttl(self, challenge: Challenge) -> None:
        ttl = self.ttl_seconds(challenge.duration)
        self.store.expire(challenge_key(challenge.id), ttl)
        self.store.expire(logs_key(challenge.id), ttl)

    # =========================================================================
    # Challenges
    # =========================================================================

    def create_challenge(
        self,
        duration: int,
        timezone: str = "UTC",
        activities: Optional[List[str]] = None,
        activity_units: Optional[Dict[str, str]] = None,
        email: Optional[str] = None,
    ) -> str:
        """
        Create an active challenge starting today.

        Args:
            duration: Length in days
            timezone: IANA zone of the creating user (advisory)
            activities: Activity names; defaults to the legacy single activity
            activity_units: Unit per activity; missing entries become reps
            email: Optional address for link delivery

        Returns:
            The new challenge id
        """
        activities = list(activities or [LEGACY_ACTIVITY])
        activity_units = activity_units or {}

        challenge = Challenge(
            id=str(uuid.uuid4()),
            duration=duration,
            start_date=self._today(),
            status=ChallengeStatus.ACTIVE,
            created_at=dates.now_ms(),
            timezone=timezone or "UTC",
            activities=activities,
            activity_units={
                name: activity_units.get(name, DEFAULT_UNIT) for name in activities
            },
            email=email or None,
        )

        with self.store.transaction():
            self.store.hset(challenge_key(challenge.id), encode_challenge(challenge))
            # The log collection does not exist yet, so only the record gets
            # a TTL here; the first log write sets it on the collection.
            self._refresh_ttl(challenge)

        logger.info(
            f"Created challenge {challenge.id}: {duration} days, "
            f"activities={activities}"
        )
        return challenge.id

    def get_challenge(self, challenge_id: str) -> Optional[Challenge]:
        """
        Read a challenge, upgrading legacy single-activity records.

        The upgrade is written back immediately so it happens at most once
        per record.
        """
        raw = self.store.hgetall(challenge_key(challenge_id))
        if not raw:
            return None

        result = migrate_challenge(raw)
        if result.changed:
            self.store.hset(
                challenge_key(challenge_id),
                {name: result.data[name] for name in result.changed_fields},
            )
            logger.info(
                f"Migrated legacy challenge {challenge_id}: added {result.changed_fields}"
            )

        return decode_challenge(result.data)

    def update_challenge_status(
        self,
        challenge_id: str,
        status: ChallengeStatus,
        completed_at: Optional[int] = None,
    ) -> bool:
        """
        Set the status (and optionally the completion instant) in place.

        Transitions are not validated here. Returns False if the challenge
        does not exist.
        """
        key = challenge_key(challenge_id)
        fields = {"status": ChallengeStatus(status).value}
        if completed_at is not None:
            fields["completedAt"] = str(completed_at)

        with self.store.transaction():
            if not self.store.exists(key):
                return False
            self.store.hset(key, fields)

        logger.info(f"Challenge {challenge_id} status -> {fields['status']}")
        return True

    def _delete_challenge_data(self, challenge_id: str) -> bool:
        keys = [challenge_key(challenge_id), logs_key(challenge_id)]
        with self.store.transaction():
            keys.extend(self.store.keys(f"challenge:{challenge_id}:metrics:*"))
            deleted = self.store.delete(*keys)
        return deleted > 0

    def abandon_challenge(self, challenge_id: str) -> bool:
        """
        Delete the challenge record, its logs and every cached metric.

        Abandoning removes the data outright; nothing is left in the
        ``abandoned`` state. Returns whether anything existed.
        """
        existed = self._delete_challenge_data(challenge_id)
        if existed:
            logger.info(f"Abandoned challenge {challenge_id}")
        return existed

    def check_and_update_completion(self, challenge_id: str) -> bool:
        """
        Complete an active challenge once its final day has been reached.

        Returns True only on the call that performs the transition.
        """
        challenge = self.get_challenge(challenge_id)
        if challenge is None or not challenge.is_active:
            return False

        if calculate_current_day(challenge, self._today()) < challenge.duration:
            return False

        self.update_challenge_status(
            challenge_id, ChallengeStatus.COMPLETED, completed_at=dates.now_ms()
        )
        logger.info(f"Challenge {challenge_id} completed after {challenge.duration} days")
        return True

    # =========================================================================
    # Logs
    # =========================================================================

    def _read_log_entries(self, challenge_id: str) -> List[Tuple[str, DailyLog]]:
        """Stored members paired with their decoded (and upgraded) entries."""
        return [
            (member, decode_log(member))
            for member in self.store.zrange(logs_key(challenge_id))
        ]

    def log_activity(
        self,
        challenge_id: str,
        activity: str,
        reps: int,
        target_date: Optional[str] = None,
        edit_mode: bool = False,
    ) -> LogOutcome:
        """
        Record one value for one activity on one date.

        Args:
            challenge_id: Challenge to log against
            activity: Activity name (membership is checked by the caller)
            reps: Value, 0-10000
            target_date: Date to log for; defaults to today
            edit_mode: Replace an existing entry for the same date and
                activity instead of refusing

        Returns:
            LogOutcome tagged LOGGED, ALREADY_LOGGED or NOT_FOUND

        The existence check and the insert run in one store transaction, so
        two concurrent writers cannot both create an entry for the same date
        and activity.
        """
        _validate_reps(reps)
        log_date = target_date or self._today()
        _validate_date(log_date)

        with self.store.transaction():
            challenge = self.get_challenge(challenge_id)
            if challenge is None:
                return LogOutcome.not_found()

            entries = self._read_log_entries(challenge_id)
            existing = [
                member for member, log in entries
                if log.date == log_date and log.activity == activity
            ]
            if existing and not edit_mode:
                return LogOutcome.already_logged(challenge)

            key = logs_key(challenge_id)
            for member in existing:
                self.store.zrem(key, member)

            timestamp = dates.now_ms()
            taken = {log.timestamp for _, log in entries}
            while timestamp in taken:
                timestamp += 1

            log = DailyLog(
                date=log_date,
                activity=activity,
                reps=reps,
                timestamp=timestamp,
                timezone=challenge.timezone,
            )
            self.store.zadd(key, encode_log(log), dates.date_score(log_date))
            self._refresh_ttl(challenge)
            self.store.delete(metrics_key(challenge_id, activity))

        logger.info(
            f"Logged {reps} {activity} for challenge {challenge_id} on {log_date}"
            + (" (edit)" if existing else "")
        )

        if self.cache_metrics:
            self._compute_metrics(challenge, activity)
        return LogOutcome.logged(log, challenge)

    def get_all_logs(self, challenge_id: str) -> List[DailyLog]:
        """All log entries of a challenge, ascending by date."""
        return [log for _, log in self._read_log_entries(challenge_id)]

    def get_logs_for_activity(self, challenge_id: str, activity: str) -> List[DailyLog]:
        """Log entries for one activity, ascending by date."""
        return [log for log in self.get_all_logs(challenge_id) if log.activity == activity]

    def has_logged_today(self, challenge_id: str, activity: str) -> bool:
        today = self._today()
        return any(
            log.date == today for log in self.get_logs_for_activity(challenge_id, activity)
        )

    def has_logged_all_activities_today(self, challenge_id: str) -> bool:
        """True iff every activity of the challenge has an entry for today."""
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            return False

        today = self._today()
        logged = {log.activity for log in self.get_all_logs(challenge_id) if log.date == today}
        return all(activity in logged for activity in challenge.activities)

    def get_yesterday_log(self, challenge_id: str, activity: str) -> Optional[DailyLog]:
        """
        The latest entry for the activity, only if it is dated yesterday.

        An older latest entry yields None rather than a stale value.
        """
        logs = self.get_logs_for_activity(challenge_id, activity)
        if not logs:
            return None

        latest = max(logs, key=lambda log: (log.date, log.timestamp))
        if latest.date == dates.yesterday(self._today()):
            return latest
        return None

    def update_log(
        self,
        challenge_id: str,
        timestamp: int,
        date: Optional[str] = None,
        activity: Optional[str] = None,
        reps: Optional[int] = None,
    ) -> LogOutcome:
        """
        Edit a log entry identified by its timestamp.

        The entry keeps its timestamp. Moving it onto a date and activity
        that already has a different entry yields ALREADY_LOGGED.
        """
        if reps is not None:
            _validate_reps(reps)
        if date is not None:
            _validate_date(date)

        with self.store.transaction():
            challenge = self.get_challenge(challenge_id)
            if challenge is None:
                return LogOutcome.not_found()

            entries = self._read_log_entries(challenge_id)
            match = next(
                ((member, log) for member, log in entries if log.timestamp == timestamp),
                None,
            )
            if match is None:
                return LogOutcome.not_found(challenge)

            old_member, old_log = match
            updated = DailyLog(
                date=date or old_log.date,
                activity=activity or old_log.activity,
                reps=old_log.reps if reps is None else reps,
                timestamp=old_log.timestamp,
                timezone=old_log.timezone,
            )

            clash = any(
                log.date == updated.date
                and log.activity == updated.activity
                and log.timestamp != timestamp
                for _, log in entries
            )
            if clash:
                return LogOutcome(status=LogStatus.ALREADY_LOGGED, log=updated, challenge=challenge)

            key = logs_key(challenge_id)
            self.store.zrem(key, old_member)
            self.store.zadd(key, encode_log(updated), dates.date_score(updated.date))
            self._refresh_ttl(challenge)
            self.store.delete(
                metrics_key(challenge_id, old_log.activity),
                metrics_key(challenge_id, updated.activity),
            )

        logger.info(f"Updated log {timestamp} of challenge {challenge_id}")
        if self.cache_metrics:
            for name in {old_log.activity, updated.activity}:
                self._compute_metrics(challenge, name)
        return LogOutcome.logged(updated, challenge)

    def delete_log(self, challenge_id: str, timestamp: int) -> LogOutcome:
        """Remove the log entry identified by its timestamp."""
        with self.store.transaction():
            challenge = self.get_challenge(challenge_id)
            if challenge is None:
                return LogOutcome.not_found()

            match = next(
                (
                    (member, log)
                    for member, log in self._read_log_entries(challenge_id)
                    if log.timestamp == timestamp
                ),
                None,
            )
            if match is None:
                return LogOutcome.not_found(challenge)

            member, log = match
            self.store.zrem(logs_key(challenge_id), member)
            self.store.delete(metrics_key(challenge_id, log.activity))

        logger.info(f"Deleted log {timestamp} of challenge {challenge_id}")
        if self.cache_metrics:
            self._compute_metrics(challenge, log.activity)
        return LogOutcome.deleted(log, challenge)

    # =========================================================================
    # Metrics
    # =========================================================================

    def _compute_metrics(
        self,
        challenge: Challenge,
        activity: str,
        logs: Optional[Iterable[DailyLog]] = None,
    ) -> ActivityMetrics:
        """
        Calculate metrics from the log collection and write them through.

        The log read and the cache write share one store transaction so a
        concurrent log write cannot land between them. Callers passing
        ``logs`` must have read them inside their own enclosing transaction.
        """
        today = self._today()
        with self.store.transaction():
            if logs is None:
                logs = self.get_all_logs(challenge.id)
            activity_logs = [log for log in logs if log.activity == activity]
            metrics = calculate_metrics(challenge, activity_logs, activity, today)

            if self.cache_metrics:
                key = metrics_key(challenge.id, activity)
                self.store.hset(key, encode_metrics(metrics, today))
                self.store.expire(key, self.ttl_seconds(challenge.duration))
        return metrics

    def _cached_metrics(self, challenge: Challenge, activity: str) -> Optional[ActivityMetrics]:
        """A cached entry, only if it was computed for today."""
        if not self.cache_metrics:
            return None
        metrics, computed_for = decode_metrics(
            self.store.hgetall(metrics_key(challenge.id, activity))
        )
        if metrics is None or computed_for != self._today():
            return None
        return metrics

    def get_metrics_for_activity(
        self, challenge_id: str, activity: str
    ) -> Optional[ActivityMetrics]:
        """
        Metrics for one activity, or None if the challenge does not exist.

        The activity is not checked against the challenge; an unknown one
        simply has no logs.
        """
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            return None
        return self._cached_metrics(challenge, activity) or self._compute_metrics(
            challenge, activity
        )

    def get_all_activity_metrics(
        self, challenge_id: str
    ) -> Optional[Dict[str, ActivityMetrics]]:
        """Metrics keyed by activity for every activity of the challenge."""
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            return None

        result: Dict[str, ActivityMetrics] = {}
        logs: Optional[List[DailyLog]] = None
        with self.store.transaction():
            for activity in challenge.activities:
                metrics = self._cached_metrics(challenge, activity)
                if metrics is None:
                    if logs is None:
                        logs = self.get_all_logs(challenge_id)
                    metrics = self._compute_metrics(challenge, activity, logs)
                result[activity] = metrics
        return result

    def calculate_and_cache_metrics(
        self, challenge_id: str, activity: str
    ) -> Optional[ActivityMetrics]:
        """Recompute one activity's metrics, bypassing any cached entry."""
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            return None
        return self._compute_metrics(challenge, activity)

    def recalculate_metrics(self, challenge_id: str) -> Optional[Dict[str, ActivityMetrics]]:
        """Recompute metrics for every activity, bypassing the cache."""
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            return None

        with self.store.transaction():
            logs = self.get_all_logs(challenge_id)
            result = {
                activity: self._compute_metrics(challenge, activity, logs)
                for activity in challenge.activities
            }
        logger.info(f"Recalculated metrics for challenge {challenge_id}")
        return result

    # =========================================================================
    # Admin
    # =========================================================================

    def list_challenges(self) -> List[Challenge]:
        """Every live challenge, newest first."""
        challenges = []
        for key in self.store.keys("challenge:*"):
            if key.count(":") != 1:
                continue
            challenge = self.get_challenge(key.split(":", 1)[1])
            if challenge is not None:
                challenges.append(challenge)
        challenges.sort(key=lambda c: c.created_at, reverse=True)
        return challenges

    def find_challenges_by_email(self, email: str) -> List[Challenge]:
        """Challenges whose email matches, ignoring case and surrounding space."""
        wanted = email.strip().lower()
        if not wanted:
            return []
        return [
            c for c in self.list_challenges()
            if c.email and c.email.strip().lower() == wanted
        ]

    def update_challenge(
        self,
        challenge_id: str,
        duration: Optional[int] = None,
        status: Optional[ChallengeStatus] = None,
        email: Optional[str] = None,
        activities: Optional[List[str]] = None,
        activity_units: Optional[Dict[str, str]] = None,
    ) -> Optional[Challenge]:
        """
        Administrative edit of a challenge.

        Only the given fields change; an empty email clears it. Moving to
        ``completed`` stamps ``completed_at`` if it is not set yet. Cached
        metrics are dropped since the duration or activities may change.
        """
        with self.store.transaction():
            challenge = self.get_challenge(challenge_id)
            if challenge is None:
                return None

            if duration is not None:
                challenge.duration = duration
            if status is not None:
                challenge.status = ChallengeStatus(status)
                if challenge.status == ChallengeStatus.COMPLETED and challenge.completed_at is None:
                    challenge.completed_at = dates.now_ms()
            if email is not None:
                challenge.email = email.strip() or None
            if activities is not None:
                challenge.activities = list(activities)
            if activities is not None or activity_units is not None:
                units = dict(challenge.activity_units)
                units.update(activity_units or {})
                challenge.activity_units = {
                    name: ActivityUnit(units.get(name, DEFAULT_UNIT))
                    for name in challenge.activities
                }

            self.store.hset(challenge_key(challenge_id), encode_challenge(challenge))
            if duration is not None:
                self._refresh_ttl(challenge)
            stale = self.store.keys(f"challenge:{challenge_id}:metrics:*")
            if stale:
                self.store.delete(*stale)

        logger.info(f"Admin updated challenge {challenge_id}")
        return challenge

    def delete_challenge(self, challenge_id: str) -> bool:
        """Administrative delete; same data removal as abandoning."""
        existed = self._delete_challenge_data(challenge_id)
        if existed:
            logger.info(f"Admin deleted challenge {challenge_id}")
        return existed

    # =========================================================================
    # Repository interface
    # =========================================================================

    def get(self, entity_id: str) -> Optional[Challenge]:
        return self.get_challenge(entity_id)

    def _filtered(self, **filters) -> List[Challenge]:
        challenges = self.list_challenges()
        status = filters.get("status")
        if status is not None:
            status = ChallengeStatus(status)
            challenges = [c for c in challenges if c.status == status]
        email = filters.get("email")
        if email is not None:
            wanted = email.strip().lower()
            challenges = [c for c in challenges if (c.email or "").lower() == wanted]
        return challenges

    def get_all(self, limit: int = 100, offset: int = 0, **filters) -> List[Challenge]:
        """Challenges newest first, filtered by ``status`` and/or ``email``."""
        return self._filtered(**filters)[offset:offset + limit]

    def delete(self, entity_id: str) -> bool:
        return self.delete_challenge(entity_id)

    def count(self, **filters) -> int:
        return len(self._filtered(**filters))


# Singleton instance for dependency injection
_challenge_repository: Optional[ChallengeRepository] = None


def get_challenge_repository() -> ChallengeRepository:
    """Get or create the singleton ChallengeRepository instance."""
    global _challenge_repository
    if _challenge_repository is None:
        from ...config import get_settings

        settings = get_settings()
        _challenge_repository = ChallengeRepository(
            grace_period_days=settings.grace_period_days,
            cache_metrics=settings.metrics_cache_enabled,
        )
    return _challenge_repository


def reset_challenge_repository() -> None:
    """Forget the singleton (tests)."""
    global _challenge_repository
    _challenge_repository = None
