from __future__ import annotations

from factory_portal.core.enums import ChangeKind
from factory_portal.database.change_feed import ChangeEvent, ChangeFeed
from factory_portal.database.models import Guitar, Run


def _collect(feed: ChangeFeed, collection: str, **kwargs) -> list[ChangeEvent]:
    events: list[ChangeEvent] = []
    feed.subscribe(collection, events.append, **kwargs)
    return events


def test_created_row_is_published_only_after_commit(session_factory, feed):
    events = _collect(feed, "runs")
    with session_factory() as session:
        session.add(Run(name="Run 1"))
        session.flush()
        assert events == []
        session.commit()

    assert len(events) == 1
    assert events[0].kind is ChangeKind.CREATED
    assert events[0].before is None
    assert events[0].after["name"] == "Run 1"
    assert events[0].doc_id == events[0].after["id"]


def test_rolled_back_transaction_publishes_nothing(session_factory, feed):
    events = _collect(feed, "runs")
    with session_factory() as session:
        session.add(Run(name="Run 1"))
        session.flush()
        session.rollback()

        session.add(Run(name="Run 2"))
        session.commit()

    assert [event.after["name"] for event in events] == ["Run 2"]


def test_update_carries_before_and_after_documents(session_factory, feed, seed_run):
    seeded = seed_run()
    events = _collect(feed, "guitars")

    with session_factory() as session:
        guitar = session.get(Guitar, seeded.guitar_id)
        guitar.stage_id = seeded.stage_ids[1]
        session.commit()

    assert [event.kind for event in events] == [ChangeKind.UPDATED]
    assert events[0].before["stage_id"] == seeded.stage_ids[0]
    assert events[0].after["stage_id"] == seeded.stage_ids[1]
    assert events[0].after["model"] == "Hype GTR"


def test_delete_publishes_before_document(session_factory, feed):
    with session_factory() as session:
        run = Run(name="Short lived")
        session.add(run)
        session.commit()
        run_id = run.id

    events = _collect(feed, "runs", kinds=[ChangeKind.DELETED])
    with session_factory() as session:
        session.delete(session.get(Run, run_id))
        session.commit()

    assert len(events) == 1
    assert events[0].after is None
    assert events[0].current["name"] == "Short lived"


def test_where_filter_matches_either_side_of_the_change(session_factory, feed, seed_run):
    first = seed_run(name="Run 7")
    second = seed_run(name="Run 8")
    events = _collect(feed, "guitars", where={"run_id": first.run_id})

    with session_factory() as session:
        session.get(Guitar, second.guitar_id).stage_id = second.stage_ids[2]
        session.commit()
    assert events == []

    with session_factory() as session:
        session.get(Guitar, first.guitar_id).stage_id = first.stage_ids[2]
        session.commit()
    assert len(events) == 1


def test_failing_subscriber_does_not_block_other_subscribers(session_factory, feed):
    def boom(change):
        raise RuntimeError("subscriber crashed")

    feed.subscribe("runs", boom)
    events = _collect(feed, "runs")

    with session_factory() as session:
        session.add(Run(name="Run 1"))
        session.commit()

    assert len(events) == 1


def test_unsubscribe_stops_delivery(session_factory, feed):
    events: list[ChangeEvent] = []
    unsubscribe = feed.subscribe("runs", events.append)
    assert feed.subscriber_count == 1

    unsubscribe()
    with session_factory() as session:
        session.add(Run(name="Run 1"))
        session.commit()

    assert feed.subscriber_count == 0
    assert events == []


def test_payload_survives_json_queue_boundary(session_factory, feed):
    events = _collect(feed, "runs")
    with session_factory() as session:
        session.add(Run(name="Run 1"))
        session.commit()

    restored = ChangeEvent.from_payload(events[0].to_payload())
    assert restored == events[0]
    assert isinstance(restored.after["starts_at"], str)
