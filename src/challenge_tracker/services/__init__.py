"""Application services."""

from .challenge_service import ChallengeService, ChallengeView, LogResult
from .notifier import EmailNotifier, create_notifier

__all__ = [
    "ChallengeService",
    "ChallengeView",
    "LogResult",
    "EmailNotifier",
    "create_notifier",
]
