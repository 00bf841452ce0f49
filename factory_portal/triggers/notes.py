"""Build note created: notify staff, and the client when the note is shared."""

from __future__ import annotations

from factory_portal.core.enums import NOTE_TYPE_LABELS
from factory_portal.database.change_feed import ChangeEvent
from factory_portal.database.models import Guitar
from factory_portal.schemas.notifications import NoteAddedMetadata, NoteAddedPayload
from factory_portal.triggers.base import TriggerDeps, TriggerResult, guitar_label, run_name, skipped
from factory_portal.utils.validators import preview_text


def handle_note_created(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    note = change.after or {}
    photo_count = len(note.get("photo_urls") or [])
    visible = bool(note.get("visible_to_client"))
    if not visible and not photo_count:
        return skipped("internal_note")

    guitar_id = note.get("guitar_id")
    guitar = deps.db.get(Guitar, guitar_id) if guitar_id else None
    if guitar is None:
        return skipped("guitar_missing")

    note_type = note.get("note_type") or "update"
    type_label = NOTE_TYPE_LABELS.get(note_type, "Update")
    label = guitar_label(guitar.model, guitar.finish)
    author_name = note.get("author_name") or "Someone"
    metadata = NoteAddedMetadata(
        guitar_model=guitar.model,
        guitar_finish=guitar.finish,
        customer_name=guitar.customer_name,
        run_name=run_name(deps.db, guitar.run_id, "the run"),
        author_name=author_name,
        note_type=note_type,
        photo_count=photo_count,
    )
    body = preview_text(note.get("message")) or f"{photo_count} photo(s) added"

    fanout = deps.notifications.notify_all(
        NoteAddedPayload(
            title=f"{type_label} on {label}",
            message=f"{author_name}: {body}",
            guitar_id=guitar.id,
            run_id=guitar.run_id,
            note_id=change.doc_id,
            metadata=metadata,
        )
    )
    result: TriggerResult = {"status": "processed", "staff_notified": fanout.written, "client_notified": False}

    if visible and guitar.client_uid:
        notification_id = deps.notifications.notify_user(
            guitar.client_uid,
            NoteAddedPayload(
                title=f"New {type_label.lower()} on your {label}",
                message=body,
                guitar_id=guitar.id,
                run_id=guitar.run_id,
                note_id=change.doc_id,
                metadata=metadata,
            ),
        )
        result["client_notified"] = notification_id is not None
    return result
