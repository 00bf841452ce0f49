from __future__ import annotations

from sqlalchemy import select

from factory_portal.core.enums import ChangeKind
from factory_portal.database.change_feed import ChangeEvent
from factory_portal.database.models import Notification
from factory_portal.services.note_service import NoteService
from factory_portal.triggers.comments import handle_note_comment_created, handle_run_update_comment_created


def _staff_rows(session_factory) -> list[Notification]:
    with session_factory() as session:
        return list(session.scalars(select(Notification).where(Notification.user_id == "staff-1")))


def test_note_comment_notifies_staff_with_truncated_preview(
    session_factory, feed, seed_run, staff, client_caller, trigger_deps
):
    seeded = seed_run()
    message = "a" * 81
    events: list[ChangeEvent] = []
    feed.subscribe("note_comments", events.append, kinds=[ChangeKind.CREATED])
    with session_factory() as session:
        service = NoteService(db=session)
        note = service.add_note(seeded.guitar_id, "Binding done", staff, visible_to_client=True)
        service.add_note_comment(note.id, message, client_caller)

    result = handle_note_comment_created(events[0], trigger_deps)

    assert result == {"status": "processed", "staff_notified": 2}
    rows = _staff_rows(session_factory)
    assert rows[0].type == "guitar_note_comment"
    assert rows[0].title == "New comment on Hype GTR – Interstellar"
    assert rows[0].message == "Alex Client: " + "a" * 80 + "…"
    assert rows[0].guitar_id == seeded.guitar_id
    assert rows[0].details["run_name"] == "Run 7"


def test_comment_of_exactly_eighty_characters_is_not_truncated(
    session_factory, feed, seed_run, staff, client_caller, trigger_deps
):
    seeded = seed_run()
    events: list[ChangeEvent] = []
    feed.subscribe("note_comments", events.append)
    with session_factory() as session:
        service = NoteService(db=session)
        note = service.add_note(seeded.guitar_id, "Binding done", staff)
        service.add_note_comment(note.id, "b" * 80, client_caller)

    handle_note_comment_created(events[0], trigger_deps)

    assert _staff_rows(session_factory)[0].message == "Alex Client: " + "b" * 80


def test_note_comment_for_missing_guitar_is_skipped(trigger_deps):
    change = ChangeEvent(
        collection="note_comments",
        kind=ChangeKind.CREATED,
        doc_id="c1",
        after={"id": "c1", "guitar_id": "gone", "note_id": "n1", "message": "hi"},
    )
    assert handle_note_comment_created(change, trigger_deps) == {"status": "skipped", "reason": "guitar_missing"}


def test_run_update_comment_names_update_and_run(session_factory, feed, seed_run, staff, client_caller, trigger_deps):
    seeded = seed_run()
    events: list[ChangeEvent] = []
    feed.subscribe("run_update_comments", events.append)
    with session_factory() as session:
        service = NoteService(db=session)
        update = service.add_run_update(seeded.run_id, "Necks glued", "All necks are glued.", staff)
        service.add_run_update_comment(update.id, "Great news!", client_caller)

    result = handle_run_update_comment_created(events[0], trigger_deps)

    assert result["staff_notified"] == 2
    rows = _staff_rows(session_factory)
    assert rows[0].type == "run_update_comment"
    assert rows[0].title == "New comment on run update: Necks glued"
    assert rows[0].message == "Alex Client on Run 7: Great news!"
    assert rows[0].run_id == seeded.run_id
