from __future__ import annotations

from sqlalchemy import select

from factory_portal.database.change_feed import ChangeEvent
from factory_portal.database.models import Notification
from factory_portal.services.note_service import NoteService
from factory_portal.triggers.notes import handle_note_created


def _add_note_and_capture(session_factory, feed, guitar_id: str, caller, **kwargs) -> ChangeEvent:
    events: list[ChangeEvent] = []
    unsubscribe = feed.subscribe("guitar_notes", events.append)
    with session_factory() as session:
        NoteService(db=session).add_note(guitar_id, context=caller, **kwargs)
    unsubscribe()
    return events[0]


def _rows_for(session_factory, user_id: str) -> list[Notification]:
    with session_factory() as session:
        return list(session.scalars(select(Notification).where(Notification.user_id == user_id)))


def test_internal_note_without_photos_is_skipped(session_factory, feed, seed_run, staff, trigger_deps):
    seeded = seed_run()
    change = _add_note_and_capture(session_factory, feed, seeded.guitar_id, staff, message="Truss rod adjusted")

    assert handle_note_created(change, trigger_deps) == {"status": "skipped", "reason": "internal_note"}


def test_shared_note_notifies_staff_and_client(session_factory, feed, seed_run, staff, trigger_deps):
    seeded = seed_run()
    change = _add_note_and_capture(
        session_factory,
        feed,
        seeded.guitar_id,
        staff,
        message="Body carved and sanded",
        note_type="milestone",
        visible_to_client=True,
    )

    result = handle_note_created(change, trigger_deps)

    assert result == {"status": "processed", "staff_notified": 2, "client_notified": True}
    staff_row = _rows_for(session_factory, "staff-1")[0]
    assert staff_row.title == "Milestone on Hype GTR – Interstellar"
    assert staff_row.message == "Sam Staff: Body carved and sanded"
    assert staff_row.note_id == change.doc_id
    client_row = _rows_for(session_factory, "client-1")[0]
    assert client_row.title == "New milestone on your Hype GTR – Interstellar"
    assert client_row.message == "Body carved and sanded"


def test_internal_note_with_photos_notifies_staff_only(session_factory, feed, seed_run, staff, trigger_deps):
    seeded = seed_run()
    change = _add_note_and_capture(
        session_factory,
        feed,
        seeded.guitar_id,
        staff,
        message="",
        photo_urls=["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"],
    )

    result = handle_note_created(change, trigger_deps)

    assert result["client_notified"] is False
    staff_row = _rows_for(session_factory, "staff-1")[0]
    assert staff_row.message == "Sam Staff: 2 photo(s) added"
    assert staff_row.details["photo_count"] == 2
    assert _rows_for(session_factory, "client-1") == []
