"""ORM models for runs, stages, guitars and the documents hanging off them."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from factory_portal.utils.ids import new_id


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base class for the portal schema."""


class UserAccount(Base):
    """Authentication directory entry; ``role`` is the custom role claim."""

    __tablename__ = "user_accounts"
    __table_args__ = (Index("idx_user_accounts_email", "email"),)

    uid: Mapped[str] = mapped_column(String(128), primary_key=True, default=new_id)
    email: Mapped[str | None] = mapped_column(String(320))
    display_name: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[str | None] = mapped_column(String(32))
    disabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class ClientProfile(Base):
    __tablename__ = "client_profiles"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320))
    alternate_email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(64))
    assigned_run_ids: Mapped[list[str] | None] = mapped_column(JSON)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Run(Base):
    __tablename__ = "runs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    factory: Mapped[str] = mapped_column(String(64), nullable=False, default="perth")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    stages: Mapped[list["Stage"]] = relationship(back_populates="run", order_by="Stage.order")


class Stage(Base):
    __tablename__ = "run_stages"
    __table_args__ = (UniqueConstraint("run_id", "order", name="uq_run_stages_run_order"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    run_id: Mapped[str] = mapped_column(ForeignKey("runs.id", ondelete="CASCADE"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    internal_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    requires_note: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    requires_photo: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_status_label: Mapped[str | None] = mapped_column(String(200))

    run: Mapped[Run] = relationship(back_populates="stages")


class Guitar(Base):
    __tablename__ = "guitars"
    __table_args__ = (
        Index("idx_guitars_run_stage", "run_id", "stage_id"),
        Index("idx_guitars_client", "client_uid"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    run_id: Mapped[str] = mapped_column(ForeignKey("runs.id"), nullable=False)
    stage_id: Mapped[str] = mapped_column(ForeignKey("run_stages.id"), nullable=False, active_history=True)
    client_uid: Mapped[str | None] = mapped_column(String(128))
    customer_name: Mapped[str | None] = mapped_column(String(200))
    customer_email: Mapped[str | None] = mapped_column(String(320))
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    model: Mapped[str] = mapped_column(String(200), nullable=False)
    finish: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    serial: Mapped[str | None] = mapped_column(String(64))
    specs: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class GuitarNote(Base):
    __tablename__ = "guitar_notes"
    __table_args__ = (Index("idx_guitar_notes_guitar_stage", "guitar_id", "stage_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    guitar_id: Mapped[str] = mapped_column(ForeignKey("guitars.id", ondelete="CASCADE"), nullable=False)
    stage_id: Mapped[str] = mapped_column(String(64), nullable=False)
    author_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    author_name: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    note_type: Mapped[str] = mapped_column(String(32), nullable=False, default="update")
    visible_to_client: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    photo_urls: Mapped[list[str] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class NoteComment(Base):
    __tablename__ = "note_comments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    guitar_id: Mapped[str] = mapped_column(ForeignKey("guitars.id", ondelete="CASCADE"), nullable=False)
    note_id: Mapped[str] = mapped_column(ForeignKey("guitar_notes.id", ondelete="CASCADE"), nullable=False, index=True)
    author_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    author_name: Mapped[str | None] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class RunUpdate(Base):
    __tablename__ = "run_updates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    run_id: Mapped[str] = mapped_column(ForeignKey("runs.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    author_name: Mapped[str | None] = mapped_column(String(200))
    visible_to_clients: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class RunUpdateComment(Base):
    __tablename__ = "run_update_comments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    run_id: Mapped[str] = mapped_column(ForeignKey("runs.id", ondelete="CASCADE"), nullable=False)
    update_id: Mapped[str] = mapped_column(ForeignKey("run_updates.id", ondelete="CASCADE"), nullable=False, index=True)
    author_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    author_name: Mapped[str | None] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (Index("idx_invoices_client", "client_uid"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    client_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    guitar_id: Mapped[str | None] = mapped_column(ForeignKey("guitars.id"))
    title: Mapped[str] = mapped_column(String(300), nullable=False, default="Invoice")
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="AUD")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    payments: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, active_history=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    guitar_id: Mapped[str | None] = mapped_column(String(64))
    run_id: Mapped[str | None] = mapped_column(String(64))
    note_id: Mapped[str | None] = mapped_column(String(64))
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)
