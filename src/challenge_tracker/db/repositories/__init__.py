"""Repository pattern implementations over the key-value store."""

from .base import Repository
from .challenge_repository import ChallengeRepository, get_challenge_repository

__all__ = [
    "Repository",
    "ChallengeRepository",
    "get_challenge_repository",
]
