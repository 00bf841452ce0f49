"""Comment created on a build note or a run update: notify staff."""

from __future__ import annotations

from factory_portal.database.change_feed import ChangeEvent
from factory_portal.database.models import Guitar, RunUpdate
from factory_portal.schemas.notifications import (
    NoteCommentMetadata,
    NoteCommentPayload,
    RunUpdateCommentMetadata,
    RunUpdateCommentPayload,
)
from factory_portal.triggers.base import TriggerDeps, TriggerResult, guitar_label, run_name, skipped
from factory_portal.utils.validators import preview_text


def handle_note_comment_created(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    comment = change.after or {}
    guitar_id = comment.get("guitar_id")
    guitar = deps.db.get(Guitar, guitar_id) if guitar_id else None
    if guitar is None:
        return skipped("guitar_missing")

    author_name = comment.get("author_name") or "Someone"
    name = run_name(deps.db, guitar.run_id, "the run")
    label = guitar_label(guitar.model, guitar.finish)

    fanout = deps.notifications.notify_all(
        NoteCommentPayload(
            title=f"New comment on {label}",
            message=f"{author_name}: {preview_text(comment.get('message'))}",
            guitar_id=guitar.id,
            run_id=guitar.run_id,
            note_id=comment.get("note_id"),
            metadata=NoteCommentMetadata(
                guitar_model=guitar.model,
                guitar_finish=guitar.finish,
                customer_name=guitar.customer_name,
                run_name=name,
                author_name=author_name,
            ),
        )
    )
    return {"status": "processed", "staff_notified": fanout.written}


def handle_run_update_comment_created(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    comment = change.after or {}
    run_id = comment.get("run_id")
    author_name = comment.get("author_name") or "Someone"
    name = run_name(deps.db, run_id, "Run")
    update = deps.db.get(RunUpdate, comment.get("update_id")) if comment.get("update_id") else None
    update_title = (update.title if update is not None else None) or "Update"

    fanout = deps.notifications.notify_all(
        RunUpdateCommentPayload(
            title=f"New comment on run update: {update_title}",
            message=f"{author_name} on {name}: {preview_text(comment.get('message'))}",
            run_id=run_id,
            metadata=RunUpdateCommentMetadata(run_name=name, update_title=update_title, author_name=author_name),
        )
    )
    return {"status": "processed", "staff_notified": fanout.written}
