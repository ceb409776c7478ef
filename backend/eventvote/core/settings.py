from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

DEFAULT_REVOTE_WINDOW_SECONDS = 3 * 60 * 60


class Settings(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    database_url: str = Field(default="sqlite:///./eventvote.sqlite3")
    admin_password: Optional[str] = Field(default=None)
    password_pepper: str = Field(default="")
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    revote_window_seconds: int = Field(default=DEFAULT_REVOTE_WINDOW_SECONDS)
    pii_key: Optional[str] = Field(default=None)
    enable_rate_limits: bool = Field(default=True)
    login_rate_limit: str = Field(default="5/minute")
    vote_rate_limit: str = Field(default="30/minute")
    log_file: str = Field(default="eventvote.log")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    if value == "":
        return default
    return value


def _load_allowed_origins() -> List[str]:
    """
    Optionally override via:
      ALLOWED_ORIGINS="https://vote.example.com"
      (comma-separated list if multiple)
    """
    raw = os.getenv("ALLOWED_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or list(DEFAULT_ALLOWED_ORIGINS)


def _load_settings() -> Settings:
    env = _env
    return Settings(
        host=env("HOST", "0.0.0.0"),
        port=int(env("PORT", "3000")),
        database_url=env("DATABASE_URL", "sqlite:///./eventvote.sqlite3"),
        admin_password=env("ADMIN_PASSWORD"),
        password_pepper=env("PASSWORD_PEPPER", "") or "",
        allowed_origins=_load_allowed_origins(),
        revote_window_seconds=int(env("REVOTE_WINDOW_SECONDS", str(DEFAULT_REVOTE_WINDOW_SECONDS))),
        pii_key=env("PII_KEY"),
        enable_rate_limits=env("ENABLE_RATE_LIMITS", "1") == "1",
        login_rate_limit=env("LOGIN_RATE_LIMIT", "5/minute"),
        vote_rate_limit=env("VOTE_RATE_LIMIT", "30/minute"),
        log_file=env("LOG_FILE", "eventvote.log"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _load_settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
