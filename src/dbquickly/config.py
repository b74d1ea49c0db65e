"""Environment settings for the command line."""

import os
from dataclasses import dataclass

from .database import DEFAULT_PATH

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    # Directory holding db-quickly.json
    path: str
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment. A bad log level raises ValueError."""
    path = os.getenv("DBQUICKLY_PATH", "").strip() or DEFAULT_PATH
    log_level = os.getenv("DBQUICKLY_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid DBQUICKLY_LOG_LEVEL {log_level!r}; "
            f"expected one of {', '.join(LOG_LEVELS)}"
        )
    return Settings(path=path, log_level=log_level)
