"""In-app notification fan-out and inbox operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from factory_portal.core.config import get_config
from factory_portal.core.exceptions import NotFoundError
from factory_portal.database.models import Notification
from factory_portal.schemas.notifications import NotificationPayload
from factory_portal.services.base_service import BaseService
from factory_portal.services.directory_service import list_staff_ids
from factory_portal.services.user_directory import AccountDirectory, UserDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FanoutResult:
    recipients: int = 0
    written: int = 0
    failed: int = 0
    batches: int = 0

    @property
    def complete(self) -> bool:
        return self.failed == 0


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[index : index + size] for index in range(0, len(items), size)]


def _build_record(user_id: str, payload: NotificationPayload, created_at: datetime) -> Notification:
    metadata = payload.metadata.model_dump(exclude_none=True)
    return Notification(
        user_id=user_id,
        type=payload.type,
        title=payload.title,
        message=payload.message,
        read=False,
        created_at=created_at,
        guitar_id=payload.guitar_id,
        run_id=payload.run_id,
        note_id=payload.note_id,
        details=metadata or None,
    )


class NotificationService(BaseService):
    """Writes per-recipient notification records and serves the inbox."""

    def __init__(
        self,
        db: Session | None = None,
        directory: UserDirectory | None = None,
        batch_limit: int | None = None,
        page_size: int | None = None,
    ) -> None:
        super().__init__(db=db)
        config = get_config()
        self.directory = directory or AccountDirectory(db=self.db)
        self.batch_limit = batch_limit or config.NOTIFICATION_BATCH_LIMIT
        self.page_size = page_size or config.DIRECTORY_PAGE_SIZE

    def notify_all(self, payload: NotificationPayload) -> FanoutResult:
        """Create one notification per staff/admin user. Never raises."""
        try:
            staff_ids = list_staff_ids(self.directory, page_size=self.page_size)
        except Exception:
            logger.exception(
                "notifications.fanout.enumeration_failed",
                extra={"event": "notifications.fanout.enumeration_failed", "notification_type": payload.type},
            )
            return FanoutResult()

        if not staff_ids:
            logger.info(
                "notifications.fanout.no_staff",
                extra={"event": "notifications.fanout.no_staff", "notification_type": payload.type},
            )
            return FanoutResult()

        return self._write_fanout(sorted(staff_ids), payload)

    def _write_fanout(self, recipients: list[str], payload: NotificationPayload) -> FanoutResult:
        created_at = datetime.now(timezone.utc)
        written = 0
        failed = 0
        batches = _chunks(recipients, self.batch_limit)
        for batch in batches:
            try:
                self.db.add_all([_build_record(user_id, payload, created_at) for user_id in batch])
                self.commit()
                written += len(batch)
            except Exception:
                self.rollback()
                failed += len(batch)
                logger.exception(
                    "notifications.fanout.batch_failed",
                    extra={
                        "event": "notifications.fanout.batch_failed",
                        "notification_type": payload.type,
                        "count": len(batch),
                    },
                )

        result = FanoutResult(recipients=len(recipients), written=written, failed=failed, batches=len(batches))
        log = logger.info if result.complete else logger.warning
        log(
            "notifications.fanout.finished",
            extra={"event": "notifications.fanout.finished", "notification_type": payload.type, "count": written},
        )
        return result

    def notify_user(self, user_id: str, payload: NotificationPayload) -> str | None:
        """Create a single notification for ``user_id``. Never raises."""
        try:
            record = _build_record(user_id, payload, datetime.now(timezone.utc))
            self.db.add(record)
            self.commit()
            return record.id
        except Exception:
            logger.exception(
                "notifications.notify_user_failed",
                extra={"event": "notifications.notify_user_failed", "notification_type": payload.type},
            )
            return None

    def notify_users(self, user_ids: list[str] | set[str], payload: NotificationPayload) -> FanoutResult:
        """Create one notification per explicit recipient (e.g. clients in a run)."""
        recipients = sorted(set(user_ids))
        if not recipients:
            return FanoutResult()
        return self._write_fanout(recipients, payload)

    def list_notifications(self, user_id: str, limit: int = 30) -> list[Notification]:
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id)
            .limit(limit)
        )
        return list(self.db.scalars(query))

    def unread_count(self, user_id: str) -> int:
        query = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        return int(self.db.scalar(query) or 0)

    def _get_owned(self, notification_id: str, user_id: str) -> Notification:
        notification = self.db.get(Notification, notification_id)
        # Another user's notification is reported as missing.
        if notification is None or notification.user_id != user_id:
            raise NotFoundError(f"Notification not found: {notification_id}")
        return notification

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self._get_owned(notification_id, user_id)
        if not notification.read:
            notification.read = True
            notification.read_at = datetime.now(timezone.utc)
            self.commit()
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        result = self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True, read_at=datetime.now(timezone.utc))
        )
        self.commit()
        return int(result.rowcount or 0)

    def delete_notification(self, notification_id: str, user_id: str) -> None:
        notification = self._get_owned(notification_id, user_id)
        self.db.delete(notification)
        self.commit()
