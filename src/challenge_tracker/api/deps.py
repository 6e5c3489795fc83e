"""Dependency injection for API routes."""

from functools import lru_cache

from ..db.repositories.challenge_repository import (
    ChallengeRepository,
    get_challenge_repository,
)
from ..services.challenge_service import ChallengeService
from ..services.notifier import EmailNotifier, create_notifier


def get_repository() -> ChallengeRepository:
    """Get the challenge repository instance."""
    return get_challenge_repository()


@lru_cache
def get_notifier() -> EmailNotifier:
    """Get the email notifier instance."""
    return create_notifier()


@lru_cache
def get_challenge_service() -> ChallengeService:
    """Get the challenge service instance."""
    return ChallengeService(repository=get_repository(), notifier=get_notifier())
