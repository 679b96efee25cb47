import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Text generation (Groq)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    GROQ_FALLBACK_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_TIMEOUT_SECONDS: float = 60.0
    GROQ_TEMPERATURE: float = 0.4

    # Week windows are computed in this zone (WIB)
    LOCAL_TIMEZONE: str = "Asia/Jakarta"
    LOCAL_UTC_OFFSET_HOURS: int = 7  # used when tz database is missing

    # Rewards
    WORDS_PER_GOLDEN_INK: int = 10
    MARBLE_BASE_REWARD: int = 1
    MARBLE_STREAK_DIVISOR: int = 7  # bonus marble every 7 streak days

    # Leveling
    XP_PER_WORD: int = 10
    BASE_XP_PER_LEVEL: int = 100

    # Weekly summaries listing
    SUMMARY_LIST_DEFAULT_LIMIT: int = 10
    SUMMARY_LIST_MAX_LIMIT: int = 50

    # Journal session history listing
    SESSION_LIST_DEFAULT_LIMIT: int = 20
    SESSION_LIST_MAX_LIMIT: int = 100

    # App URLs
    FRONTEND_ORIGIN: str = "http://localhost:3000"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("inkwell")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = [
        "DATABASE_URL",
        "GROQ_API_KEY",
    ]

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    positive_keys = [
        "BASE_XP_PER_LEVEL",
        "SUMMARY_LIST_DEFAULT_LIMIT",
        "SUMMARY_LIST_MAX_LIMIT",
        "SESSION_LIST_DEFAULT_LIMIT",
        "SESSION_LIST_MAX_LIMIT",
    ]
    invalid = [key for key in positive_keys if int(getattr(cfg, key, 0) or 0) <= 0]
    if invalid:
        message = f"Configuration must be positive: {', '.join(invalid)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
