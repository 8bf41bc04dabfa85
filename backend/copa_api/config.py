"""
Application settings.

Settings are read from the environment (and a local .env file) into an immutable
Settings object. The SettingsProvider owns the current instance; callers that need
fresh values after the environment changes call reload() explicitly.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return None


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./copa.db"
    sql_echo: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    session_cookie_name: str = "portal_session"
    admin_role: str = "admin"
    bracket_allow_byes: bool = True
    bracket_draw_seed: Optional[int] = None  # fixed seed -> reproducible draws
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    load_dotenv()

    defaults = Settings()
    origins = list(defaults.cors_origins)
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())

    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        sql_echo=_env_bool("SQL_ECHO", False),
        cors_origins=origins,
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", defaults.session_cookie_name),
        admin_role=os.getenv("ADMIN_ROLE", defaults.admin_role),
        bracket_allow_byes=_env_bool("BRACKET_ALLOW_BYES", True),
        bracket_draw_seed=_env_int("BRACKET_DRAW_SEED"),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )


class SettingsProvider:
    """Holds the active Settings. Nothing is re-read until reload() is called."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

    def get(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    def reload(self) -> Settings:
        self._settings = load_settings()
        logger.info("Settings reloaded")
        return self._settings

    def override(self, settings: Settings) -> None:
        self._settings = settings


settings_provider = SettingsProvider()


def get_settings() -> Settings:
    """FastAPI dependency"""
    return settings_provider.get()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
