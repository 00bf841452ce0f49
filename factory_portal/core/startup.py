"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from factory_portal.core.config import get_config
from factory_portal.core.logging_config import configure_logging
from factory_portal.database.change_feed import Unsubscribe
from factory_portal.database.db import get_active_database_url, verify_database_connection
from factory_portal.tasks.dispatcher import register_trigger_dispatch

logger = logging.getLogger(__name__)

_dispatch_unsubscribe: Unsubscribe | None = None


def validate_startup_config() -> None:
    """Fail-fast config and connectivity checks."""
    config = get_config()
    database_ok = verify_database_connection()
    active_database_url = get_active_database_url()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )
    if not config.mail_configured:
        logger.info("startup.mail.not_configured", extra={"event": "startup.mail.not_configured"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        },
    )


def start_trigger_dispatch() -> None:
    """Route committed changes to the trigger queue (once per process)."""
    global _dispatch_unsubscribe
    if _dispatch_unsubscribe is not None:
        return
    _dispatch_unsubscribe = register_trigger_dispatch()


def stop_trigger_dispatch() -> None:
    global _dispatch_unsubscribe
    if _dispatch_unsubscribe is not None:
        _dispatch_unsubscribe()
        _dispatch_unsubscribe = None


def bootstrap(dispatch_triggers: bool = True) -> None:
    """Initialize logging, validate runtime configuration and wire triggers."""
    configure_logging()
    validate_startup_config()
    if dispatch_triggers:
        start_trigger_dispatch()
