"""Collaborators and lookups shared by the change-trigger handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from factory_portal.core.config import Config, get_config
from factory_portal.database.models import Run, Stage
from factory_portal.services.email_sender import EmailSender, MailSender
from factory_portal.services.email_templates import Branding
from factory_portal.services.notification_service import NotificationService
from factory_portal.services.user_directory import AccountDirectory, UserDirectory
from factory_portal.utils.validators import join_label

TriggerResult = dict[str, Any]


@dataclass
class TriggerDeps:
    """Everything a handler needs; built once per delivery.

    ``directory`` is only set when a directory was supplied explicitly;
    otherwise every session gets its own table-backed ``AccountDirectory``.
    """

    db: Session
    session_factory: sessionmaker
    mailer: MailSender
    notifications: NotificationService
    config: Config = field(default_factory=get_config)
    explicit_directory: UserDirectory | None = None

    @classmethod
    def build(
        cls,
        session_factory: sessionmaker,
        directory: UserDirectory | None = None,
        mailer: MailSender | None = None,
        config: Config | None = None,
    ) -> "TriggerDeps":
        config = config or get_config()
        db = session_factory()
        return cls(
            db=db,
            session_factory=session_factory,
            mailer=mailer or EmailSender(config=config),
            notifications=NotificationService(db=db, directory=directory or AccountDirectory(db=db)),
            config=config,
            explicit_directory=directory,
        )

    @property
    def directory(self) -> UserDirectory:
        return self.directory_for(self.db)

    def directory_for(self, session: Session) -> UserDirectory:
        return self.explicit_directory or AccountDirectory(db=session)

    @property
    def branding(self) -> Branding:
        return Branding.from_config(self.config)

    def close(self) -> None:
        self.db.close()


def skipped(reason: str) -> TriggerResult:
    return {"status": "skipped", "reason": reason}


def run_name(db: Session, run_id: str | None, default: str) -> str:
    run = db.get(Run, run_id) if run_id else None
    return (run.name if run is not None else None) or default


def stages_by_id(db: Session, run_id: str | None) -> dict[str, Stage]:
    if not run_id:
        return {}
    return {stage.id: stage for stage in db.scalars(select(Stage).where(Stage.run_id == run_id))}


def stage_label(stage: Stage | None, fallback: str) -> str:
    """Prefer the specific internal label, then the client-facing one, then ``fallback``."""
    if stage is None:
        return fallback
    return stage.label or stage.client_status_label or fallback


def client_stage_label(stage: Stage | None, fallback: str) -> str:
    """Client-facing label; internal-only stages never expose their internal label."""
    if stage is None:
        return fallback
    if stage.client_status_label:
        return stage.client_status_label
    if stage.internal_only:
        return fallback
    return stage.label or fallback


def guitar_label(model: str | None, finish: str | None, default: str = "Guitar") -> str:
    return join_label(model, finish) or default
