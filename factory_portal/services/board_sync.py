"""Live per-run board state fed by the change feed.

A ``BoardSynchronizer`` keeps the latest run, stage and guitar snapshots for
one run and recomputes the derived :class:`BoardView` on every tick. Local
moves are shown immediately through optimistic overrides; an override is
dropped by the first guitars snapshot that arrives after its durable write was
attempted, whether that write succeeded or not.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.enums import MoveOutcome, NoteType
from factory_portal.core.exceptions import NotFoundError, TransitionError, ValidationError
from factory_portal.database import db as db_module
from factory_portal.database.change_feed import ChangeEvent, ChangeFeed, Unsubscribe, feed_for, to_document
from factory_portal.database.models import Guitar, Run, Stage
from factory_portal.services.board_views import (
    BoardView,
    GuitarSnapshot,
    RunSnapshot,
    StageSnapshot,
    build_board_view,
)
from factory_portal.services.note_service import NoteService
from factory_portal.services.stage_pipeline import StagePipeline

logger = logging.getLogger(__name__)

ViewListener = Callable[[BoardView], None]
CaptureCallback = Callable[[str, StageSnapshot], None]


def load_snapshots(
    session: Session, run_id: str
) -> tuple[RunSnapshot | None, list[StageSnapshot], list[GuitarSnapshot]]:
    """Read the run, its stages and its guitars as immutable snapshots."""
    run = session.get(Run, run_id)
    stages = session.scalars(select(Stage).where(Stage.run_id == run_id)).all()
    guitars = session.scalars(select(Guitar).where(Guitar.run_id == run_id)).all()
    return (
        RunSnapshot.from_document(to_document(run)) if run is not None else None,
        [StageSnapshot.from_document(to_document(stage)) for stage in stages],
        [GuitarSnapshot.from_document(to_document(guitar)) for guitar in guitars],
    )


def load_board_view(session: Session, run_id: str) -> BoardView:
    """Build a one-off board view straight from the database."""
    run, stages, guitars = load_snapshots(session, run_id)
    if run is None:
        raise NotFoundError(f"Run not found: {run_id}")
    return build_board_view(run, stages, guitars)


@dataclass
class _Override:
    stage_id: str
    attempted: bool = False


class BoardSynchronizer:
    def __init__(
        self,
        run_id: str,
        context: CallerContext,
        session_factory: sessionmaker | None = None,
        feed: ChangeFeed | None = None,
        on_capture_required: CaptureCallback | None = None,
    ) -> None:
        self.run_id = run_id
        self.context = context
        self._session_factory = session_factory or db_module.get_session_factory()
        self._feed = feed or feed_for(self._session_factory)
        self._on_capture_required = on_capture_required

        self._lock = threading.RLock()
        self._run: RunSnapshot | None = None
        self._stages: dict[str, StageSnapshot] = {}
        self._guitars: dict[str, GuitarSnapshot] = {}
        self._overrides: dict[str, _Override] = {}
        self._pending_capture: dict[str, str] = {}
        self._listeners: list[ViewListener] = []
        self._unsubscribers: list[Unsubscribe] = []
        self._view = build_board_view(None, [], [])

    # Lifecycle

    def start(self) -> "BoardSynchronizer":
        """Subscribe to the run, its stages and its guitars, then load snapshots."""
        if self._unsubscribers:
            return self
        self._unsubscribers = [
            self._feed.subscribe("runs", self._on_run_change, where={"id": self.run_id}),
            self._feed.subscribe("run_stages", self._on_stage_change, where={"run_id": self.run_id}),
            self._feed.subscribe("guitars", self._on_guitar_change, where={"run_id": self.run_id}),
        ]
        self.refresh()
        logger.debug("board.started", extra={"event": "board.started", "run_id": self.run_id})
        return self

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        logger.debug("board.stopped", extra={"event": "board.stopped", "run_id": self.run_id})

    @property
    def running(self) -> bool:
        return bool(self._unsubscribers)

    def __enter__(self) -> "BoardSynchronizer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # Views

    @property
    def view(self) -> BoardView:
        with self._lock:
            return self._view

    @property
    def pending_captures(self) -> dict[str, str]:
        with self._lock:
            return dict(self._pending_capture)

    def on_change(self, listener: ViewListener) -> Callable[[], None]:
        """Register ``listener`` for every recomputed view; returns the remover."""
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def refresh(self) -> BoardView:
        """Reload all snapshots from the database; counts as a guitars tick."""
        with self._session_factory() as session:
            run_snapshot, stage_list, guitar_list = load_snapshots(session, self.run_id)

        with self._lock:
            self._run = run_snapshot
            self._stages = {stage.id: stage for stage in stage_list}
            self._guitars = {guitar.id: guitar for guitar in guitar_list}
        return self._tick(guitars_snapshot=True)

    def _effective_guitars(self) -> list[GuitarSnapshot]:
        guitars = []
        for guitar in self._guitars.values():
            override = self._overrides.get(guitar.id)
            guitars.append(replace(guitar, stage_id=override.stage_id) if override else guitar)
        return guitars

    def _tick(self, guitars_snapshot: bool = False, guitar_id: str | None = None) -> BoardView:
        """Recompute the view; a guitars snapshot drops overrides whose write was attempted.

        ``guitar_id`` limits that to one guitar (a single-document feed event).
        """
        with self._lock:
            if guitars_snapshot:
                self._overrides = {
                    key: override
                    for key, override in self._overrides.items()
                    if not override.attempted or (guitar_id is not None and key != guitar_id)
                }
            self._view = build_board_view(self._run, self._stages.values(), self._effective_guitars())
            view = self._view
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(view)
            except Exception:
                logger.exception("board.listener_failed", extra={"event": "board.listener_failed", "run_id": self.run_id})
        return view

    # Change feed callbacks

    def _on_run_change(self, change: ChangeEvent) -> None:
        with self._lock:
            self._run = RunSnapshot.from_document(change.after) if change.after else None
        self._tick()

    def _on_stage_change(self, change: ChangeEvent) -> None:
        with self._lock:
            if change.after and change.after.get("run_id") == self.run_id:
                self._stages[change.doc_id] = StageSnapshot.from_document(change.after)
            else:
                self._stages.pop(change.doc_id, None)
        self._tick()

    def _on_guitar_change(self, change: ChangeEvent) -> None:
        with self._lock:
            if change.after and change.after.get("run_id") == self.run_id:
                self._guitars[change.doc_id] = GuitarSnapshot.from_document(change.after)
            else:
                self._guitars.pop(change.doc_id, None)
        self._tick(guitars_snapshot=True, guitar_id=change.doc_id)

    # Moves

    def move(self, guitar_id: str, target_stage_id: str) -> MoveOutcome:
        """Move a guitar on the board.

        Returns ``NOOP`` when the guitar already sits at that stage (or one
        with the same order), ``AWAITING_CAPTURE`` when the target stage asks
        for a note or photo, and ``COMMITTED`` once the write went through.
        """
        with self._lock:
            guitar = next((g for g in self._effective_guitars() if g.id == guitar_id), None)
            if guitar is None:
                raise NotFoundError(f"Guitar not on board: {guitar_id}")
            target = self._stages.get(target_stage_id)
            if target is None:
                raise NotFoundError(f"Stage not on board: {target_stage_id}")
            current = self._stages.get(guitar.stage_id)
            if guitar.stage_id == target.id or (current is not None and current.order == target.order):
                return MoveOutcome.NOOP

            self._overrides[guitar_id] = _Override(stage_id=target.id)
            if target.gated:
                self._pending_capture[guitar_id] = target.id
            else:
                self._pending_capture.pop(guitar_id, None)
        self._tick()

        if target.gated:
            logger.info(
                "board.capture_required",
                extra={"event": "board.capture_required", "guitar_id": guitar_id, "stage_id": target.id},
            )
            if self._on_capture_required is not None:
                self._on_capture_required(guitar_id, target)
            return MoveOutcome.AWAITING_CAPTURE

        self._write_move(guitar_id, target.id)
        return MoveOutcome.COMMITTED

    def submit_capture(
        self,
        guitar_id: str,
        message: str,
        photo_urls: list[str] | None = None,
        note_type: str = NoteType.UPDATE.value,
        visible_to_client: bool = False,
    ) -> MoveOutcome:
        """Write the captured note at the target stage, then move the guitar."""
        stage_id = self._capture_target(guitar_id)
        with self._session_factory() as session:
            NoteService(db=session).add_note(
                guitar_id,
                message,
                self.context,
                note_type=note_type,
                visible_to_client=visible_to_client,
                photo_urls=photo_urls,
                stage_id=stage_id,
            )
        with self._lock:
            self._pending_capture.pop(guitar_id, None)
        self._write_move(guitar_id, stage_id)
        return MoveOutcome.COMMITTED

    def dismiss_capture(self, guitar_id: str) -> MoveOutcome:
        """Skip the capture form; the move still happens."""
        stage_id = self._capture_target(guitar_id)
        with self._lock:
            self._pending_capture.pop(guitar_id, None)
        self._write_move(guitar_id, stage_id)
        return MoveOutcome.COMMITTED

    def _capture_target(self, guitar_id: str) -> str:
        with self._lock:
            stage_id = self._pending_capture.get(guitar_id)
        if stage_id is None:
            raise ValidationError(f"No capture pending for guitar {guitar_id}.")
        return stage_id

    def _write_move(self, guitar_id: str, stage_id: str) -> None:
        with self._lock:
            override = self._overrides.get(guitar_id)
            if override is not None:
                override.attempted = True

        try:
            with self._session_factory() as session:
                StagePipeline(db=session).transition(guitar_id, stage_id, self.context)
        except TransitionError:
            logger.warning(
                "board.move_failed",
                extra={"event": "board.move_failed", "guitar_id": guitar_id, "stage_id": stage_id},
            )
            raise
