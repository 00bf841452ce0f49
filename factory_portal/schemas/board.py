"""Board view and stage-move schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from factory_portal.services.board_views import BoardView, GuitarProgress


class GuitarCard(BaseModel):
    id: str
    order_number: str
    model: str
    finish: str
    customer_name: str | None = None
    stage_id: str
    progress: float | None = None
    progress_percent: int | None = None

    @classmethod
    def from_progress(cls, entry: GuitarProgress) -> "GuitarCard":
        guitar = entry.guitar
        return cls(
            id=guitar.id,
            order_number=guitar.order_number,
            model=guitar.model,
            finish=guitar.finish,
            customer_name=guitar.customer_name,
            stage_id=guitar.stage_id,
            progress=entry.fraction,
            progress_percent=entry.percent,
        )


class StageColumnResponse(BaseModel):
    stage_id: str
    label: str
    order: int
    internal_only: bool
    requires_note: bool
    requires_photo: bool
    count: int
    guitars: list[GuitarCard]


class BoardResponse(BaseModel):
    run_id: str
    run_name: str
    total: int
    columns: list[StageColumnResponse]
    unplaced: list[GuitarCard] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: BoardView) -> "BoardResponse":
        return cls(
            run_id=view.run.id if view.run else "",
            run_name=view.run.name if view.run else "",
            total=view.total,
            columns=[
                StageColumnResponse(
                    stage_id=column.stage.id,
                    label=column.stage.label,
                    order=column.stage.order,
                    internal_only=column.stage.internal_only,
                    requires_note=column.stage.requires_note,
                    requires_photo=column.stage.requires_photo,
                    count=column.count,
                    guitars=[GuitarCard.from_progress(entry) for entry in column.guitars],
                )
                for column in view.columns
            ],
            unplaced=[GuitarCard.from_progress(entry) for entry in view.unplaced],
        )


class MoveRequest(BaseModel):
    stage_id: str = Field(min_length=1, max_length=64)


class MoveResponse(BaseModel):
    guitar_id: str
    run_id: str
    stage_id: str
