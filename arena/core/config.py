"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Puzzle Arena"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./arena.db"

    # Session tokens are issued by the auth service with the same secret
    secret_key: str = "change-me-in-production-use-env"
    session_cookie_name: str = "arena_session"
    session_max_age_seconds: int = 60 * 60 * 24 * 14  # 14 days

    # Cooldown gate: two escalating (attempts, cooldown) tiers
    rate_limit_attempts_threshold_1: int = 3
    rate_limit_cooldown_1_seconds: int = 3 * 60
    rate_limit_attempts_threshold_2: int = 5
    rate_limit_cooldown_2_seconds: int = 5 * 60

    # Catalog answer checker
    checker_timeout_seconds: float = 30.0

    # Concurrency
    lock_timeout_seconds: float = 10.0
    broadcast_send_timeout_seconds: float = 2.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


# Repository root (parent of arena/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent
