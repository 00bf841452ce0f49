"""Database bootstrap: run migrations to head and ensure every table exists."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

import factory_portal.database.db as db_module
from factory_portal.core.startup import bootstrap
from factory_portal.database.models import Base

logger = logging.getLogger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _sqlite_db_path(database_url: str) -> Path | None:
    prefix = "sqlite:///"
    if not database_url.startswith(prefix):
        return None
    raw = database_url[len(prefix) :]
    if raw in {":memory:", ""}:
        return None
    path = Path(raw)
    if not path.is_absolute():
        path = (PROJECT_ROOT / path).resolve()
    return path


def _reset_sqlite_db(database_url: str) -> Path | None:
    """Move a mismatched local SQLite file aside and rebind the engine."""
    db_path = _sqlite_db_path(database_url)
    if not db_path or not db_path.exists():
        db_module.reset_engine(database_url)
        return None

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{timestamp}{db_path.suffix}")
    db_module.get_engine().dispose()
    db_path.replace(backup_path)
    db_module.reset_engine(database_url)
    return backup_path


def init_db() -> None:
    bootstrap(dispatch_triggers=False)
    active_url = db_module.get_active_database_url()
    try:
        command.upgrade(build_alembic_config(active_url), "head")
    except Exception as exc:
        if not active_url.startswith("sqlite:///"):
            raise
        backup_path = _reset_sqlite_db(active_url)
        logger.warning(
            "database.sqlite.reset_for_schema_mismatch",
            extra={
                "event": "database.sqlite.reset_for_schema_mismatch",
                "backup_path": str(backup_path) if backup_path else None,
                "reason": str(exc),
            },
        )
        command.upgrade(build_alembic_config(active_url), "head")

    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info("database.tables.created", extra={"event": "database.tables.created"})


if __name__ == "__main__":
    init_db()
