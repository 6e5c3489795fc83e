"""Persistence layer: store adapters, codec, migrations and repositories."""

from .connection import get_store, reset_store, set_store
from .repositories import ChallengeRepository, get_challenge_repository

__all__ = [
    "get_store",
    "reset_store",
    "set_store",
    "ChallengeRepository",
    "get_challenge_repository",
]
