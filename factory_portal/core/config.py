"""Configuration module for the factory portal."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from factory_portal.core.exceptions import ConfigurationError

load_dotenv()

DEFAULT_LOGO_URL = "https://ormsbyguitars.com/cdn/shop/files/OrmsbyLogo_nosite_white_73380.png?width=200"


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    REDIS_URL: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    CELERY_TASK_ALWAYS_EAGER: bool
    TRIGGER_TIME_LIMIT_SECONDS: int
    MAILGUN_API_KEY: str | None
    MAILGUN_DOMAIN: str | None
    MAILGUN_FROM_NAME: str
    MAILGUN_FROM_EMAIL: str | None
    MAILGUN_API_HOST: str
    MAILGUN_TIMEOUT_SECONDS: int
    PORTAL_URL: str
    LOGO_URL: str
    DIRECTORY_PAGE_SIZE: int
    NOTIFICATION_BATCH_LIMIT: int
    EMAIL_LOOKUP_WORKERS: int
    STAGE_GATES_ENFORCED: bool
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def mail_configured(self) -> bool:
        return bool(self.MAILGUN_API_KEY and self.MAILGUN_DOMAIN)


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    broker_url = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    config = Config(
        APP_NAME="Factory Portal",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./factory_portal.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(os.getenv("DB_CONNECTIVITY_REQUIRED"), default=resolved_env == "production"),
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        JWT_ACCESS_TTL_MINUTES=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "60")),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        CELERY_BROKER_URL=broker_url,
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", broker_url),
        CELERY_TASK_ALWAYS_EAGER=_as_bool(os.getenv("CELERY_TASK_ALWAYS_EAGER")),
        TRIGGER_TIME_LIMIT_SECONDS=int(os.getenv("TRIGGER_TIME_LIMIT_SECONDS", "60")),
        MAILGUN_API_KEY=os.getenv("MAILGUN_API_KEY") or None,
        MAILGUN_DOMAIN=os.getenv("MAILGUN_DOMAIN") or None,
        MAILGUN_FROM_NAME=os.getenv("MAILGUN_FROM_NAME", "Ormsby Guitars"),
        MAILGUN_FROM_EMAIL=os.getenv("MAILGUN_FROM_EMAIL") or None,
        MAILGUN_API_HOST=os.getenv("MAILGUN_API_HOST", "https://api.mailgun.net").rstrip("/"),
        MAILGUN_TIMEOUT_SECONDS=int(os.getenv("MAILGUN_TIMEOUT_SECONDS", "15")),
        PORTAL_URL=os.getenv("PORTAL_URL", ""),
        LOGO_URL=os.getenv("LOGO_URL", DEFAULT_LOGO_URL),
        DIRECTORY_PAGE_SIZE=int(os.getenv("DIRECTORY_PAGE_SIZE", "1000")),
        NOTIFICATION_BATCH_LIMIT=int(os.getenv("NOTIFICATION_BATCH_LIMIT", "500")),
        EMAIL_LOOKUP_WORKERS=int(os.getenv("EMAIL_LOOKUP_WORKERS", "8")),
        STAGE_GATES_ENFORCED=_as_bool(os.getenv("STAGE_GATES_ENFORCED")),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    if config.TRIGGER_TIME_LIMIT_SECONDS < 1:
        raise ConfigurationError("TRIGGER_TIME_LIMIT_SECONDS must be >= 1.")
    if not 1 <= config.DIRECTORY_PAGE_SIZE <= 1000:
        raise ConfigurationError("DIRECTORY_PAGE_SIZE must be between 1 and 1000.")
    if not 1 <= config.NOTIFICATION_BATCH_LIMIT <= 500:
        raise ConfigurationError("NOTIFICATION_BATCH_LIMIT must be between 1 and 500.")
    if config.EMAIL_LOOKUP_WORKERS < 1:
        raise ConfigurationError("EMAIL_LOOKUP_WORKERS must be >= 1.")
    if config.MAILGUN_TIMEOUT_SECONDS < 1:
        raise ConfigurationError("MAILGUN_TIMEOUT_SECONDS must be >= 1.")
    if bool(config.MAILGUN_API_KEY) != bool(config.MAILGUN_DOMAIN):
        raise ConfigurationError("MAILGUN_API_KEY and MAILGUN_DOMAIN must be set together.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.JWT_SECRET:
        raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
