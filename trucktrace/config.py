"""
config.py – Settings read from the environment (.env via python-dotenv).

Read once, when deps builds the service singletons.
"""
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret-change-me"


@dataclass(frozen=True)
class Settings:
    database_url:        str
    jwt_secret:          str
    jwt_expires_days:    int
    reset_token_minutes: int
    frontend_url:        str
    rate_limit:          str
    rate_limit_enabled:  bool
    log_level:           str
    environment:         str


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _normalise_db_url(url: str) -> str:
    # Heroku/Railway still hand out postgres:// which SQLAlchemy 2 rejects
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def get_settings() -> Settings:
    settings = Settings(
        database_url=_normalise_db_url(os.getenv("DATABASE_URL", "sqlite:///./data/trucktrace.db")),
        jwt_secret=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
        jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "7")),
        reset_token_minutes=int(os.getenv("RESET_TOKEN_MINUTES", "30")),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000"),
        rate_limit=os.getenv("RATE_LIMIT", "100/15minutes"),
        rate_limit_enabled=_as_bool(os.getenv("RATE_LIMIT_ENABLED", "true")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        environment=os.getenv("ENVIRONMENT", "development"),
    )
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET not set – using the development default")
    return settings
