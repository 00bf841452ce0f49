"""Ordered per-run stage sequence and the single guitar ``transition`` write."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.config import get_config
from factory_portal.core.exceptions import (
    CrossRunStageError,
    GateRequirementError,
    NotFoundError,
    TransitionError,
    ValidationError,
)
from factory_portal.database.models import Guitar, GuitarNote, Stage, utcnow
from factory_portal.services.base_service import BaseService

logger = logging.getLogger(__name__)


class StageLike(Protocol):
    id: str
    order: int


S = TypeVar("S", bound=StageLike)


def ordered_stages(stages: Iterable[S]) -> list[S]:
    """Sort stages by ``order``; ids break ties so the result is always total."""
    return sorted(stages, key=lambda stage: (stage.order, stage.id))


def validate_stage_order(stages: Iterable[StageLike]) -> None:
    """Reject a stage list whose ``order`` values collide."""
    seen: dict[int, str] = {}
    for stage in stages:
        if stage.order in seen:
            raise ValidationError(
                f"Stages {seen[stage.order]} and {stage.id} share order {stage.order}."
            )
        seen[stage.order] = stage.id


def stage_index(stage_id: str, stages: Sequence[StageLike]) -> int | None:
    for index, stage in enumerate(ordered_stages(stages)):
        if stage.id == stage_id:
            return index
    return None


def progress_for(stage_id: str, stages: Sequence[StageLike]) -> float | None:
    """Return ``(index + 1) / count`` for ``stage_id``, or ``None`` if it is not in ``stages``."""
    index = stage_index(stage_id, stages)
    if index is None:
        return None
    return (index + 1) / len(stages)


def progress_percent(fraction: float | None) -> int | None:
    if fraction is None:
        return None
    # Half rounds up: 2/3 -> 67, 1/8 -> 13.
    return int(math.floor(fraction * 100 + 0.5))


def is_gated(stage: Stage) -> bool:
    return bool(stage.requires_note or stage.requires_photo)


class StagePipeline(BaseService):
    """Moves guitars between the stages of their run."""

    def __init__(self, db: Session | None = None, gates_enforced: bool | None = None) -> None:
        super().__init__(db=db)
        self.gates_enforced = get_config().STAGE_GATES_ENFORCED if gates_enforced is None else gates_enforced

    def list_stages(self, run_id: str) -> list[Stage]:
        return list(self.db.scalars(select(Stage).where(Stage.run_id == run_id).order_by(Stage.order, Stage.id)))

    def first_stage(self, run_id: str) -> Stage | None:
        stages = self.list_stages(run_id)
        return stages[0] if stages else None

    def get_guitar(self, guitar_id: str) -> Guitar:
        guitar = self.db.get(Guitar, guitar_id)
        if guitar is None:
            raise NotFoundError(f"Guitar not found: {guitar_id}")
        return guitar

    def get_stage(self, stage_id: str) -> Stage:
        stage = self.db.get(Stage, stage_id)
        if stage is None:
            raise NotFoundError(f"Stage not found: {stage_id}")
        return stage

    def _check_gates(self, guitar: Guitar, stage: Stage) -> None:
        notes = list(
            self.db.scalars(
                select(GuitarNote).where(GuitarNote.guitar_id == guitar.id, GuitarNote.stage_id == stage.id)
            )
        )
        if stage.requires_note and not notes:
            raise GateRequirementError(f"Stage {stage.label} requires a note before moving.")
        if stage.requires_photo and not any(note.photo_urls for note in notes):
            raise GateRequirementError(f"Stage {stage.label} requires a photo before moving.")

    def transition(self, guitar_id: str, target_stage_id: str, context: CallerContext) -> Guitar:
        """Move a guitar to ``target_stage_id`` in one atomic row update.

        Raises ``NotFoundError`` for an unknown guitar or stage,
        ``CrossRunStageError`` when the stage belongs to another run and
        ``TransitionError`` when the write itself fails. Repeating a
        transition to the same stage is harmless.
        """
        context.require("guitars.move")
        guitar = self.get_guitar(guitar_id)
        stage = self.get_stage(target_stage_id)
        if stage.run_id != guitar.run_id:
            raise CrossRunStageError(
                f"Stage {stage.id} belongs to run {stage.run_id}, guitar {guitar.id} to run {guitar.run_id}."
            )
        if self.gates_enforced and is_gated(stage):
            self._check_gates(guitar, stage)

        previous_stage_id = guitar.stage_id
        try:
            guitar.stage_id = stage.id
            guitar.updated_at = utcnow()
            self.commit()
        except SQLAlchemyError as exc:
            logger.exception(
                "pipeline.transition.failed",
                extra={"event": "pipeline.transition.failed", "guitar_id": guitar_id, "stage_id": target_stage_id},
            )
            raise TransitionError(f"Could not move guitar {guitar_id} to stage {target_stage_id}.") from exc

        logger.info(
            "pipeline.transition.committed",
            extra={
                "event": "pipeline.transition.committed",
                "guitar_id": guitar_id,
                "stage_id": target_stage_id,
                "run_id": stage.run_id,
            },
        )
        if previous_stage_id == stage.id:
            logger.debug("pipeline.transition.same_stage", extra={"event": "pipeline.transition.same_stage"})
        return guitar
