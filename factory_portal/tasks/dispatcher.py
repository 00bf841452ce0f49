"""Bridge from the change feed to the trigger queue."""

from __future__ import annotations

import logging

from factory_portal.database.change_feed import ChangeEvent, ChangeFeed, Unsubscribe, change_feed
from factory_portal.tasks.registry import TriggerRegistry, default_registry
from factory_portal.tasks.trigger_tasks import dispatch_change

logger = logging.getLogger(__name__)


def enqueue_change(change: ChangeEvent) -> None:
    """Queue one committed change; enqueue failures never reach the writer."""
    try:
        dispatch_change.apply_async(args=[change.to_payload()])
    except Exception:
        logger.exception(
            "trigger.enqueue_failed",
            extra={"event": "trigger.enqueue_failed", "trigger": f"{change.collection}.{change.kind.value}"},
        )


def register_trigger_dispatch(
    feed: ChangeFeed | None = None,
    registry: TriggerRegistry | None = None,
) -> Unsubscribe:
    """Subscribe every registered trigger binding on ``feed``; returns the remover."""
    feed = feed or change_feed
    unsubscribers = [
        feed.subscribe(collection, enqueue_change, kinds=[kind])
        for collection, kind in (registry or default_registry).bindings()
    ]
    logger.info(
        "trigger.dispatch_registered",
        extra={"event": "trigger.dispatch_registered", "count": len(unsubscribers)},
    )

    def unsubscribe_all() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return unsubscribe_all
