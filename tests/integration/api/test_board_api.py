from __future__ import annotations

import pytest
from fastapi import HTTPException

from factory_portal.api.v1 import board, health
from factory_portal.schemas.board import MoveRequest


def test_health_reports_service_status():
    response = health.health()
    assert response["status"] == "ok"
    assert response["service"] == "Factory Portal"
    assert "change_feed_subscribers" in response


def test_board_requires_authorization(db_session, seed_run):
    seeded = seed_run()
    with pytest.raises(HTTPException) as exc:
        board.get_board(seeded.run_id, authorization=None, db=db_session)
    assert exc.value.status_code == 401


def test_board_rejects_malformed_or_forged_token(db_session, seed_run):
    seeded = seed_run()
    for header in ("Token abc", "Bearer not.a.jwt"):
        with pytest.raises(HTTPException) as exc:
            board.get_board(seeded.run_id, authorization=header, db=db_session)
        assert exc.value.status_code == 401


def test_board_is_forbidden_for_clients(db_session, seed_run, auth_header):
    seeded = seed_run()
    with pytest.raises(HTTPException) as exc:
        board.get_board(seeded.run_id, authorization=auth_header("client-1", "client"), db=db_session)
    assert exc.value.status_code == 403


def test_board_returns_columns_with_progress(db_session, seed_run, auth_header):
    seeded = seed_run()
    response = board.get_board(seeded.run_id, authorization=auth_header(), db=db_session)

    assert response.run_name == "Run 7"
    assert response.total == 1
    assert [column.label for column in response.columns] == ["Wood Selection", "Body Shaping", "Finishing"]
    card = response.columns[0].guitars[0]
    assert card.id == seeded.guitar_id
    assert card.progress_percent == 33


def test_board_for_unknown_run_is_404(db_session, auth_header):
    with pytest.raises(HTTPException) as exc:
        board.get_board("missing-run", authorization=auth_header(), db=db_session)
    assert exc.value.status_code == 404


def test_move_guitar_commits_transition(db_session, seed_run, auth_header):
    seeded = seed_run()
    response = board.move_guitar(
        seeded.guitar_id,
        MoveRequest(stage_id=seeded.stage_ids[2]),
        authorization=auth_header("factory-1", "factory", "Floor Lead"),
        db=db_session,
    )

    assert response.stage_id == seeded.stage_ids[2]
    assert response.run_id == seeded.run_id


def test_move_guitar_maps_domain_errors(db_session, seed_run, auth_header):
    first = seed_run(name="Run 7")
    second = seed_run(name="Run 8")

    with pytest.raises(HTTPException) as exc:
        board.move_guitar(first.guitar_id, MoveRequest(stage_id=second.stage_ids[1]), authorization=auth_header(), db=db_session)
    assert exc.value.status_code == 409

    with pytest.raises(HTTPException) as exc:
        board.move_guitar(first.guitar_id, MoveRequest(stage_id="missing"), authorization=auth_header(), db=db_session)
    assert exc.value.status_code == 404


def test_move_guitar_requires_move_scope(db_session, seed_run, auth_header):
    seeded = seed_run()
    with pytest.raises(HTTPException) as exc:
        board.move_guitar(
            seeded.guitar_id,
            MoveRequest(stage_id=seeded.stage_ids[1]),
            authorization=auth_header("acct-1", "accounting"),
            db=db_session,
        )
    assert exc.value.status_code == 403
