"""Run, stage and guitar creation write paths."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.exceptions import CrossRunStageError, NotFoundError, ValidationError
from factory_portal.database.models import Guitar, Run, Stage, utcnow
from factory_portal.services.base_service import BaseService
from factory_portal.services.stage_pipeline import StagePipeline, validate_stage_order
from factory_portal.utils.validators import sanitize_text


class RunService(BaseService):
    """Creates runs with their stage sequence and the guitars built in them."""

    def get_run(self, run_id: str) -> Run:
        run = self.db.get(Run, run_id)
        if run is None:
            raise NotFoundError(f"Run not found: {run_id}")
        return run

    def create_run(
        self,
        name: str,
        context: CallerContext,
        factory: str = "perth",
        stages: Sequence[dict[str, Any]] = (),
    ) -> Run:
        """Create a run and, optionally, its stages in one transaction.

        Each stage dict takes ``label`` plus any of ``order``, ``internal_only``,
        ``requires_note``, ``requires_photo`` and ``client_status_label``;
        ``order`` defaults to the position in ``stages``.
        """
        context.require("runs.manage")
        clean_name = sanitize_text(name, 200)
        if not clean_name:
            raise ValidationError("Run name is required.")

        run = Run(name=clean_name, factory=factory)
        rows = [
            Stage(
                label=sanitize_text(stage_def["label"], 200),
                order=int(stage_def.get("order", position)),
                internal_only=bool(stage_def.get("internal_only", False)),
                requires_note=bool(stage_def.get("requires_note", False)),
                requires_photo=bool(stage_def.get("requires_photo", False)),
                client_status_label=stage_def.get("client_status_label"),
            )
            for position, stage_def in enumerate(stages)
        ]
        validate_stage_order(rows)
        run.stages = rows
        self.db.add(run)
        self.commit()
        return run

    def create_stage(
        self,
        run_id: str,
        label: str,
        order: int,
        context: CallerContext,
        internal_only: bool = False,
        requires_note: bool = False,
        requires_photo: bool = False,
        client_status_label: str | None = None,
    ) -> Stage:
        context.require("runs.manage")
        run = self.get_run(run_id)
        stage = Stage(
            run_id=run.id,
            label=sanitize_text(label, 200),
            order=order,
            internal_only=internal_only,
            requires_note=requires_note,
            requires_photo=requires_photo,
            client_status_label=client_status_label,
        )
        validate_stage_order([*run.stages, stage])
        self.db.add(stage)
        self.commit()
        return stage

    def create_guitar(
        self,
        run_id: str,
        order_number: str,
        model: str,
        context: CallerContext,
        finish: str = "",
        stage_id: str | None = None,
        client_uid: str | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
        serial: str | None = None,
        specs: dict[str, Any] | None = None,
    ) -> Guitar:
        """Create a guitar, placed in ``stage_id`` or the run's first stage."""
        context.require("runs.manage")
        run = self.get_run(run_id)
        pipeline = StagePipeline(db=self.db)
        if stage_id is None:
            stage = pipeline.first_stage(run.id)
            if stage is None:
                raise ValidationError(f"Run {run.id} has no stages.")
        else:
            stage = pipeline.get_stage(stage_id)
            if stage.run_id != run.id:
                raise CrossRunStageError(f"Stage {stage.id} does not belong to run {run.id}.")

        guitar = Guitar(
            run_id=run.id,
            stage_id=stage.id,
            order_number=sanitize_text(order_number, 64),
            model=sanitize_text(model, 200),
            finish=sanitize_text(finish, 200),
            client_uid=client_uid,
            customer_name=customer_name,
            customer_email=customer_email,
            serial=serial,
            specs=specs,
        )
        self.db.add(guitar)
        self.commit()
        return guitar

    def archive_guitar(self, guitar_id: str, context: CallerContext) -> Guitar:
        context.require("runs.manage")
        guitar = self.db.get(Guitar, guitar_id)
        if guitar is None:
            raise NotFoundError(f"Guitar not found: {guitar_id}")
        if not guitar.archived:
            guitar.archived = True
            guitar.archived_at = utcnow()
            guitar.updated_at = guitar.archived_at
            self.commit()
        return guitar
