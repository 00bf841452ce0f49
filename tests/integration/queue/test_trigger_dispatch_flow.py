from __future__ import annotations

from sqlalchemy import select

from factory_portal.database.models import Notification
from factory_portal.services.note_service import NoteService
from factory_portal.services.stage_pipeline import StagePipeline
from factory_portal.tasks import dispatcher, trigger_tasks
from factory_portal.tasks.celery_app import celery_app
from factory_portal.triggers.base import TriggerDeps


def _eager_dispatch(monkeypatch, session_factory, feed, directory, mailer):
    monkeypatch.setattr(celery_app.conf, "task_always_eager", True)
    monkeypatch.setattr(
        trigger_tasks,
        "build_trigger_deps",
        lambda: TriggerDeps.build(session_factory, directory=directory, mailer=mailer),
    )
    return dispatcher.register_trigger_dispatch(feed=feed)


def test_stage_move_reaches_staff_and_client_through_worker(
    session_factory, feed, seed_run, staff, directory, mailer, monkeypatch
):
    seeded = seed_run()
    unsubscribe = _eager_dispatch(monkeypatch, session_factory, feed, directory, mailer)
    try:
        with session_factory() as session:
            StagePipeline(db=session).transition(seeded.guitar_id, seeded.stage_ids[1], staff)
    finally:
        unsubscribe()

    with session_factory() as session:
        rows = list(session.scalars(select(Notification).order_by(Notification.user_id)))
    assert [(row.user_id, row.type) for row in rows] == [
        ("admin-1", "guitar_stage_changed"),
        ("client-1", "guitar_stage_changed"),
        ("staff-1", "guitar_stage_changed"),
    ]
    assert [mail["to"] for mail in mailer.sent] == ["client1@example.com"]


def test_comment_reaches_staff_through_worker(
    session_factory, feed, seed_run, staff, client_caller, directory, mailer, monkeypatch
):
    seeded = seed_run()
    with session_factory() as session:
        note_id = NoteService(db=session).add_note(seeded.guitar_id, "Frets levelled", staff).id

    unsubscribe = _eager_dispatch(monkeypatch, session_factory, feed, directory, mailer)
    try:
        with session_factory() as session:
            NoteService(db=session).add_note_comment(note_id, "Can't wait!", client_caller)
    finally:
        unsubscribe()

    with session_factory() as session:
        rows = list(session.scalars(select(Notification).where(Notification.type == "guitar_note_comment")))
    assert sorted(row.user_id for row in rows) == ["admin-1", "staff-1"]
    assert rows[0].message == "Alex Client: Can't wait!"
