from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Replaces the deprecated ``datetime.utcnow()`` while keeping datetimes
    naive so they stay compatible with SQLite (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "Flashcards SRS"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'flashcards.db'}"
    debug: bool = False
    cors_origins: list[str] = []  # JSON list in the environment, e.g. ["http://localhost:5173"]

    # Used when a learner has no quota configuration of their own
    default_daily_new_limit: int = 25
    default_daily_review_limit: int = 50
    default_timezone: str = "UTC"

    # Scheduler policy
    ease_floor: float = 1.3
    default_ease: float = 2.5
    again_ease_penalty: float = 0.20
    hard_ease_penalty: float = 0.15
    easy_ease_bonus: float = 0.15
    hard_interval_multiplier: float = 1.2
    easy_interval_multiplier: float = 1.3
    hard_first_interval: int = 1
    good_first_interval: int = 1
    easy_first_interval: int = 4
    graduation_interval: int = 21  # days; at or above this a card is in "review"
    max_interval: int = 36500  # days; keeps due dates representable

    review_conflict_retries: int = 3

    model_config = {"env_prefix": "FLASHCARDS_", "env_file": ".env"}


settings = Settings()
