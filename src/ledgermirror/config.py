from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Literal

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_DATABASE_URL = "sqlite:///ledgermirror.db"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Process configuration loaded at startup."""

    database_url: str = DEFAULT_DATABASE_URL
    api_url: str | None = None
    user_id: str | None = None
    log_level: LogLevel = "INFO"

    def require_api_url(self) -> str:
        if not self.api_url:
            raise ValueError(
                "Missing required environment variable: LEDGERMIRROR_API_URL"
            )
        return self.api_url


def _optional_env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def load_config_from_env() -> AppConfig:
    """Load configuration from the environment and validate it."""
    database_url = (
        _optional_env("LEDGERMIRROR_DATABASE_URL") or DEFAULT_DATABASE_URL
    )

    log_level = os.environ.get("LEDGERMIRROR_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            "LEDGERMIRROR_LOG_LEVEL must be one of: "
            + ", ".join(sorted(_LOG_LEVELS))
        )

    return AppConfig(
        database_url=database_url,
        api_url=_optional_env("LEDGERMIRROR_API_URL"),
        user_id=_optional_env("LEDGERMIRROR_USER_ID"),
        log_level=log_level,  # type: ignore[arg-type]
    )
