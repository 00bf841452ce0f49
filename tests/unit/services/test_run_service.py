from __future__ import annotations

import pytest

from factory_portal.core.exceptions import AuthorizationError, CrossRunStageError, NotFoundError, ValidationError
from factory_portal.database.models import Guitar
from factory_portal.services.run_service import RunService


def test_create_run_orders_stages_and_places_guitar_at_first_stage(session_factory, seed_run):
    seeded = seed_run()
    with session_factory() as session:
        run = RunService(db=session).get_run(seeded.run_id)
        assert [stage.label for stage in run.stages] == ["Wood Selection", "Body Shaping", "Finishing"]
        assert [stage.order for stage in run.stages] == [0, 1, 2]
        assert session.get(Guitar, seeded.guitar_id).stage_id == seeded.stage_ids[0]


def test_create_run_rejects_duplicate_stage_orders(db_session, admin):
    with pytest.raises(ValidationError):
        RunService(db=db_session).create_run("Run 9", admin, stages=[{"label": "A", "order": 1}, {"label": "B", "order": 1}])


def test_create_stage_rejects_order_already_used(db_session, seed_run, admin):
    seeded = seed_run()
    with pytest.raises(ValidationError):
        RunService(db=db_session).create_stage(seeded.run_id, "Duplicate", 1, admin)


def test_create_guitar_rejects_stage_from_another_run(db_session, seed_run, admin):
    first = seed_run(name="Run 7")
    second = seed_run(name="Run 8")
    with pytest.raises(CrossRunStageError):
        RunService(db=db_session).create_guitar(first.run_id, "ORD-2", "Goliath", admin, stage_id=second.stage_ids[0])


def test_create_guitar_requires_stages_and_known_run(db_session, admin):
    service = RunService(db=db_session)
    empty = service.create_run("Empty", admin)
    with pytest.raises(ValidationError):
        service.create_guitar(empty.id, "ORD-3", "Goliath", admin)
    with pytest.raises(NotFoundError):
        service.create_guitar("missing-run", "ORD-3", "Goliath", admin)


def test_run_management_requires_scope(db_session, client_caller):
    with pytest.raises(AuthorizationError):
        RunService(db=db_session).create_run("Run 9", client_caller)


def test_archive_guitar_is_idempotent(db_session, seed_run, admin):
    seeded = seed_run()
    service = RunService(db=db_session)
    first = service.archive_guitar(seeded.guitar_id, admin)
    archived_at = first.archived_at
    second = service.archive_guitar(seeded.guitar_id, admin)

    assert second.archived is True
    assert second.archived_at == archived_at
