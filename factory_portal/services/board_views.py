"""Pure derived views over a run's stage and guitar snapshots.

Nothing here touches the database. The views are recomputed from scratch on
every change-feed tick, so no counter or list survives between ticks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from factory_portal.services.stage_pipeline import ordered_stages, progress_percent


def _from_document(cls, document: Mapping[str, Any]):
    names = {item.name for item in fields(cls)}
    return cls(**{key: value for key, value in document.items() if key in names})


@dataclass(frozen=True)
class RunSnapshot:
    id: str
    name: str = ""
    factory: str | None = None
    is_active: bool = True
    archived: bool = False

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "RunSnapshot":
        return _from_document(cls, document)


@dataclass(frozen=True)
class StageSnapshot:
    id: str
    run_id: str
    label: str
    order: int
    internal_only: bool = False
    requires_note: bool = False
    requires_photo: bool = False
    client_status_label: str | None = None

    @property
    def gated(self) -> bool:
        return self.requires_note or self.requires_photo

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "StageSnapshot":
        return _from_document(cls, document)


@dataclass(frozen=True)
class GuitarSnapshot:
    id: str
    run_id: str
    stage_id: str
    order_number: str = ""
    model: str = ""
    finish: str = ""
    customer_name: str | None = None
    client_uid: str | None = None
    serial: str | None = None
    archived: bool = False

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "GuitarSnapshot":
        return _from_document(cls, document)


@dataclass(frozen=True)
class GuitarProgress:
    guitar: GuitarSnapshot
    stage_index: int | None = None
    fraction: float | None = None
    percent: int | None = None


@dataclass(frozen=True)
class StageColumn:
    stage: StageSnapshot
    guitars: tuple[GuitarProgress, ...]

    @property
    def count(self) -> int:
        return len(self.guitars)


@dataclass(frozen=True)
class BoardView:
    run: RunSnapshot | None
    columns: tuple[StageColumn, ...]
    unplaced: tuple[GuitarProgress, ...] = ()

    @property
    def total(self) -> int:
        return sum(column.count for column in self.columns) + len(self.unplaced)

    @property
    def counts(self) -> dict[str, int]:
        return {column.stage.id: column.count for column in self.columns}

    def column(self, stage_id: str) -> StageColumn | None:
        for column in self.columns:
            if column.stage.id == stage_id:
                return column
        return None

    def progress(self, guitar_id: str) -> GuitarProgress | None:
        for entry in self.unplaced:
            if entry.guitar.id == guitar_id:
                return entry
        for column in self.columns:
            for entry in column.guitars:
                if entry.guitar.id == guitar_id:
                    return entry
        return None


def _guitar_sort_key(guitar: GuitarSnapshot) -> tuple[str, str]:
    return (guitar.order_number or "", guitar.id)


def build_board_view(
    run: RunSnapshot | None,
    stages: Iterable[StageSnapshot],
    guitars: Iterable[GuitarSnapshot],
) -> BoardView:
    """Group non-archived guitars by stage and attach per-guitar progress."""
    ordered = ordered_stages(stages)
    count = len(ordered)
    positions = {stage.id: index for index, stage in enumerate(ordered)}
    buckets: dict[str, list[GuitarProgress]] = {stage.id: [] for stage in ordered}
    unplaced: list[GuitarProgress] = []

    for guitar in sorted((g for g in guitars if not g.archived), key=_guitar_sort_key):
        index = positions.get(guitar.stage_id)
        if index is None:
            unplaced.append(GuitarProgress(guitar=guitar))
            continue
        fraction = (index + 1) / count
        buckets[guitar.stage_id].append(
            GuitarProgress(guitar=guitar, stage_index=index, fraction=fraction, percent=progress_percent(fraction))
        )

    return BoardView(
        run=run,
        columns=tuple(StageColumn(stage=stage, guitars=tuple(buckets[stage.id])) for stage in ordered),
        unplaced=tuple(unplaced),
    )
