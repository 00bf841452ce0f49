from __future__ import annotations

from factory_portal.services.board_views import GuitarSnapshot, RunSnapshot, StageSnapshot, build_board_view

RUN = RunSnapshot(id="run-1", name="Run 7")
STAGES = [
    StageSnapshot(id="finishing", run_id="run-1", label="Finishing", order=2),
    StageSnapshot(id="wood", run_id="run-1", label="Wood Selection", order=0),
    StageSnapshot(id="body", run_id="run-1", label="Body Shaping", order=1, requires_note=True),
]


def _guitar(guitar_id: str, stage_id: str, order_number: str, archived: bool = False) -> GuitarSnapshot:
    return GuitarSnapshot(
        id=guitar_id,
        run_id="run-1",
        stage_id=stage_id,
        order_number=order_number,
        model="Hype GTR",
        archived=archived,
    )


def test_columns_follow_stage_order_and_count_guitars():
    guitars = [
        _guitar("g1", "body", "ORD-2"),
        _guitar("g2", "body", "ORD-1"),
        _guitar("g3", "wood", "ORD-3"),
    ]
    view = build_board_view(RUN, STAGES, guitars)

    assert [column.stage.id for column in view.columns] == ["wood", "body", "finishing"]
    assert view.counts == {"wood": 1, "body": 2, "finishing": 0}
    assert view.total == 3
    assert [entry.guitar.id for entry in view.column("body").guitars] == ["g2", "g1"]


def test_progress_is_attached_per_guitar():
    view = build_board_view(RUN, STAGES, [_guitar("g1", "body", "ORD-1"), _guitar("g2", "finishing", "ORD-2")])

    assert view.progress("g1").stage_index == 1
    assert view.progress("g1").percent == 67
    assert view.progress("g2").percent == 100


def test_archived_guitars_are_excluded():
    view = build_board_view(RUN, STAGES, [_guitar("g1", "wood", "ORD-1", archived=True)])

    assert view.total == 0
    assert view.progress("g1") is None


def test_guitar_at_unknown_stage_is_unplaced_without_progress():
    view = build_board_view(RUN, STAGES, [_guitar("g1", "deleted-stage", "ORD-1")])

    assert [entry.guitar.id for entry in view.unplaced] == ["g1"]
    assert view.progress("g1").percent is None
    assert view.total == 1


def test_recomputing_from_the_same_snapshots_gives_the_same_view():
    guitars = [_guitar("g1", "body", "ORD-1")]
    assert build_board_view(RUN, STAGES, guitars) == build_board_view(RUN, list(reversed(STAGES)), guitars)


def test_gated_flag_reflects_note_or_photo_requirement():
    assert STAGES[2].gated is True
    assert STAGES[0].gated is False


def test_snapshot_from_partial_document_uses_defaults():
    snapshot = GuitarSnapshot.from_document({"id": "g1", "run_id": "run-1", "stage_id": "wood", "unknown": 1})
    assert snapshot.customer_name is None
    assert snapshot.archived is False
