"""Write paths for build notes, note comments, run updates and their comments."""

from __future__ import annotations

import logging

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.enums import NoteType
from factory_portal.core.exceptions import NotFoundError, ValidationError
from factory_portal.database.models import Guitar, GuitarNote, NoteComment, Run, RunUpdate, RunUpdateComment
from factory_portal.services.base_service import BaseService
from factory_portal.utils.validators import sanitize_text

logger = logging.getLogger(__name__)

_NOTE_TYPES = {item.value for item in NoteType}


class NoteService(BaseService):
    """Creates the documents whose insertion drives the notification triggers."""

    def _get(self, model, key: str, label: str):
        row = self.db.get(model, key)
        if row is None:
            raise NotFoundError(f"{label} not found: {key}")
        return row

    def add_note(
        self,
        guitar_id: str,
        message: str,
        context: CallerContext,
        note_type: str = NoteType.UPDATE.value,
        visible_to_client: bool = False,
        photo_urls: list[str] | None = None,
        stage_id: str | None = None,
    ) -> GuitarNote:
        """Attach a note to a guitar, at ``stage_id`` or the guitar's current stage."""
        context.require("notes.create")
        if note_type not in _NOTE_TYPES:
            raise ValidationError(f"Unknown note type: {note_type}")
        guitar = self._get(Guitar, guitar_id, "Guitar")
        note = GuitarNote(
            guitar_id=guitar.id,
            stage_id=stage_id or guitar.stage_id,
            author_uid=context.user_id,
            author_name=context.author_name,
            message=sanitize_text(message),
            note_type=note_type,
            visible_to_client=visible_to_client,
            photo_urls=[url for url in (photo_urls or []) if url] or None,
        )
        self.db.add(note)
        self.commit()
        return note

    def add_note_comment(self, note_id: str, message: str, context: CallerContext) -> NoteComment:
        context.require("comments.create")
        note = self._get(GuitarNote, note_id, "Note")
        text = sanitize_text(message, 5000)
        if not text:
            raise ValidationError("Comment message is required.")
        comment = NoteComment(
            guitar_id=note.guitar_id,
            note_id=note.id,
            author_uid=context.user_id,
            author_name=context.display_name,
            message=text,
        )
        self.db.add(comment)
        self.commit()
        return comment

    def add_run_update(
        self,
        run_id: str,
        title: str,
        message: str,
        context: CallerContext,
        visible_to_clients: bool = False,
    ) -> RunUpdate:
        context.require("run_updates.create")
        run = self._get(Run, run_id, "Run")
        clean_title = sanitize_text(title, 300)
        if not clean_title:
            raise ValidationError("Run update title is required.")
        update = RunUpdate(
            run_id=run.id,
            title=clean_title,
            message=sanitize_text(message),
            author_uid=context.user_id,
            author_name=context.display_name,
            visible_to_clients=visible_to_clients,
        )
        self.db.add(update)
        self.commit()
        logger.info(
            "run_update.created",
            extra={"event": "run_update.created", "run_id": run.id},
        )
        return update

    def add_run_update_comment(self, update_id: str, message: str, context: CallerContext) -> RunUpdateComment:
        context.require("comments.create")
        update = self._get(RunUpdate, update_id, "Run update")
        text = sanitize_text(message, 5000)
        if not text:
            raise ValidationError("Comment message is required.")
        comment = RunUpdateComment(
            run_id=update.run_id,
            update_id=update.id,
            author_uid=context.user_id,
            author_name=context.display_name,
            message=text,
        )
        self.db.add(comment)
        self.commit()
        return comment
