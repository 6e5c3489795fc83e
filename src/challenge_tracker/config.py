"""Configuration settings for the Challenge Tracker."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


# __file__ = src/challenge_tracker/config.py
PACKAGE_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Key-value store
    store_backend: str = "sqlite"  # "sqlite" or "memory"
    store_path: Path | None = None

    # Records live for the challenge duration plus this many days
    grace_period_days: int = 30
    metrics_cache_enabled: bool = True

    # Admin gate
    admin_password: str = ""
    admin_token: str = ""

    # Links in emails point here
    app_url: str = "http://localhost:3000"

    # Brevo transactional email
    brevo_api_key: str = ""
    brevo_from_email: str = "noreply@example.com"
    brevo_from_name: str = "Challenge Tracker"
    email_timeout_seconds: float = 10.0

    def model_post_init(self, __context) -> None:
        """Set the default store path after initialization."""
        if self.store_path is None:
            self.store_path = PACKAGE_ROOT / "challenges.db"

    class Config:
        env_file = str(PACKAGE_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
