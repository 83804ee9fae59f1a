"""Configuration for the catch-up recommendation engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Find and load .env file
_env_candidates = [
    Path(__file__).parent.parent / ".env",
    Path(__file__).parent.parent / ".env.template",
]

for env_path in _env_candidates:
    if env_path.exists():
        load_dotenv(env_path)
        break


class Config:
    """Catch-up engine configuration."""

    # --- Guidelines ---
    # Version string stamped on every result
    CDC_VERSION: str = os.getenv("CDC_VERSION", "2025.1")
    # Doses up to this many days early still count
    GRACE_PERIOD_DAYS: int = int(os.getenv("GRACE_PERIOD_DAYS", "4"))

    # --- Persistence ---
    # Unset disables the request/result store
    CATCHUP_DB_PATH: str | None = os.getenv("CATCHUP_DB_PATH")

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def is_persistence_configured(cls) -> bool:
        """Check if a request/result store path is configured."""
        return bool(cls.CATCHUP_DB_PATH)


config = Config()
