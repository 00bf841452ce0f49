from __future__ import annotations

from factory_portal.database.models import Guitar, Run
from factory_portal.services.stage_pipeline import StagePipeline
from factory_portal.tasks import dispatcher


class _Task:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.payloads: list[dict] = []

    def apply_async(self, args=None, **kwargs):
        if self.error is not None:
            raise self.error
        self.payloads.append(args[0])


def test_committed_bound_changes_are_queued(session_factory, feed, seed_run, staff, monkeypatch):
    seeded = seed_run()
    task = _Task()
    monkeypatch.setattr(dispatcher, "dispatch_change", task)

    unsubscribe = dispatcher.register_trigger_dispatch(feed=feed)
    assert feed.subscriber_count == 6

    with session_factory() as session:
        session.add(Run(name="Unbound change"))
        session.commit()
        StagePipeline(db=session).transition(seeded.guitar_id, seeded.stage_ids[1], staff)

    assert [(payload["collection"], payload["kind"]) for payload in task.payloads] == [("guitars", "updated")]
    assert task.payloads[0]["after"]["stage_id"] == seeded.stage_ids[1]

    unsubscribe()
    assert feed.subscriber_count == 0


def test_enqueue_failure_does_not_reach_the_writer(session_factory, feed, seed_run, staff, monkeypatch):
    seeded = seed_run()
    monkeypatch.setattr(dispatcher, "dispatch_change", _Task(error=ConnectionError("broker down")))
    unsubscribe = dispatcher.register_trigger_dispatch(feed=feed)

    with session_factory() as session:
        StagePipeline(db=session).transition(seeded.guitar_id, seeded.stage_ids[2], staff)

    with session_factory() as session:
        assert session.get(Guitar, seeded.guitar_id).stage_id == seeded.stage_ids[2]
    unsubscribe()
