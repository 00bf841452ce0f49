from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from factory_portal.core.exceptions import NotFoundError
from factory_portal.database.models import Notification
from factory_portal.schemas.notifications import RunUpdateMetadata, RunUpdatePayload
from factory_portal.services.notification_service import FanoutResult, NotificationService
from factory_portal.services.user_directory import UserRecord


def _payload() -> RunUpdatePayload:
    return RunUpdatePayload(
        title="Run update: Necks glued",
        message="Sam Staff posted to Run 7: All necks are glued.",
        run_id="run-7",
        metadata=RunUpdateMetadata(run_name="Run 7"),
    )


def _staff(count: int) -> list[UserRecord]:
    return [UserRecord(uid=f"staff-{index:03d}", role="staff") for index in range(count)]


def _rows(session) -> list[Notification]:
    return list(session.scalars(select(Notification).order_by(Notification.user_id)))


def test_fanout_without_staff_writes_nothing(db_session, make_directory):
    directory = make_directory([UserRecord(uid="client-1", role="client")])
    result = NotificationService(db=db_session, directory=directory).notify_all(_payload())

    assert result == FanoutResult()
    assert _rows(db_session) == []


def test_fanout_writes_one_identical_record_per_staff_user(db_session, directory):
    result = NotificationService(db=db_session, directory=directory).notify_all(_payload())

    rows = _rows(db_session)
    assert result.written == 2
    assert result.complete
    assert [row.user_id for row in rows] == ["admin-1", "staff-1"]
    assert {(row.type, row.title, row.message, row.read) for row in rows} == {
        ("run_update", "Run update: Necks glued", "Sam Staff posted to Run 7: All necks are glued.", False)
    }
    assert len({row.created_at for row in rows}) == 1
    assert rows[0].details == {"run_name": "Run 7"}
    assert rows[0].run_id == "run-7"


def test_fanout_splits_recipients_into_batches(db_session, make_directory):
    service = NotificationService(db=db_session, directory=make_directory(_staff(5)), batch_limit=2)
    result = service.notify_all(_payload())

    assert result == FanoutResult(recipients=5, written=5, failed=0, batches=3)
    assert db_session.scalar(select(func.count(Notification.id))) == 5


def test_failed_batch_is_reported_without_losing_other_batches(db_session, make_directory, monkeypatch):
    service = NotificationService(db=db_session, directory=make_directory(_staff(5)), batch_limit=2)
    real_commit = db_session.commit
    calls = {"count": 0}

    def flaky_commit():
        calls["count"] += 1
        if calls["count"] == 2:
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk I/O error"))
        real_commit()

    monkeypatch.setattr(db_session, "commit", flaky_commit)
    result = service.notify_all(_payload())

    assert result.written == 3
    assert result.failed == 2
    assert not result.complete
    assert [row.user_id for row in _rows(db_session)] == ["staff-000", "staff-001", "staff-004"]


def test_directory_failure_is_logged_not_raised(db_session):
    class BrokenDirectory:
        def list_users(self, max_results=1000, page_token=None):
            raise ConnectionError("directory unavailable")

        def get_user(self, uid):
            raise ConnectionError("directory unavailable")

    result = NotificationService(db=db_session, directory=BrokenDirectory()).notify_all(_payload())

    assert result == FanoutResult()
    assert _rows(db_session) == []


def test_notify_user_and_notify_users(db_session, directory):
    service = NotificationService(db=db_session, directory=directory)

    notification_id = service.notify_user("client-1", _payload())
    result = service.notify_users(["client-2", "client-3", "client-2"], _payload())

    assert db_session.get(Notification, notification_id).user_id == "client-1"
    assert result.written == 2
    assert service.notify_users([], _payload()) == FanoutResult()


def _seed_inbox(session, user_id: str) -> list[str]:
    now = datetime.now(timezone.utc)
    rows = [
        Notification(user_id=user_id, type="run_update", title=f"Update {index}", message="m", created_at=now + timedelta(minutes=index))
        for index in range(3)
    ]
    rows.append(Notification(user_id="someone-else", type="run_update", title="Other", message="m", created_at=now))
    session.add_all(rows)
    session.commit()
    return [row.id for row in rows]


def test_inbox_lists_newest_first_and_counts_unread(db_session, directory):
    _seed_inbox(db_session, "staff-1")
    service = NotificationService(db=db_session, directory=directory)

    assert [item.title for item in service.list_notifications("staff-1")] == ["Update 2", "Update 1", "Update 0"]
    assert [item.title for item in service.list_notifications("staff-1", limit=1)] == ["Update 2"]
    assert service.unread_count("staff-1") == 3


def test_mark_as_read_and_mark_all(db_session, directory):
    ids = _seed_inbox(db_session, "staff-1")
    service = NotificationService(db=db_session, directory=directory)

    notification = service.mark_as_read(ids[0], "staff-1")
    assert notification.read is True
    assert notification.read_at is not None
    assert service.unread_count("staff-1") == 2

    assert service.mark_all_as_read("staff-1") == 2
    assert service.unread_count("staff-1") == 0
    assert service.unread_count("someone-else") == 1


def test_delete_and_ownership_checks(db_session, directory):
    ids = _seed_inbox(db_session, "staff-1")
    service = NotificationService(db=db_session, directory=directory)

    with pytest.raises(NotFoundError):
        service.mark_as_read(ids[3], "staff-1")
    with pytest.raises(NotFoundError):
        service.delete_notification(ids[3], "staff-1")

    service.delete_notification(ids[0], "staff-1")
    assert db_session.get(Notification, ids[0]) is None
    with pytest.raises(NotFoundError):
        service.delete_notification(ids[0], "staff-1")
