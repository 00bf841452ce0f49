"""Celery tasks that run change-trigger handlers."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from factory_portal.database import db as db_module
from factory_portal.database.change_feed import ChangeEvent
from factory_portal.tasks.celery_app import celery_app
from factory_portal.tasks.hooks import after_task, before_task
from factory_portal.tasks.registry import TriggerRegistry, default_registry, trigger_key
from factory_portal.triggers.base import TriggerDeps, TriggerResult, skipped

logger = logging.getLogger(__name__)


def build_trigger_deps() -> TriggerDeps:
    return TriggerDeps.build(db_module.get_session_factory())


def run_trigger(
    payload: dict[str, Any],
    registry: TriggerRegistry | None = None,
    deps_factory: Callable[[], TriggerDeps] | None = None,
) -> TriggerResult:
    """Run the handler bound to ``payload``'s collection and change kind.

    Handler errors are logged and re-raised so the broker records the
    failure; there is no retry and redelivery is not deduplicated.
    """
    change = ChangeEvent.from_payload(payload)
    key = trigger_key(change.collection, change.kind)
    trace_id = uuid.uuid4().hex
    try:
        handler = (registry or default_registry).get(key)
    except KeyError:
        logger.warning("trigger.unknown", extra={"event": "trigger.unknown", "trigger": key})
        return skipped("unknown_trigger")

    logger.info("trigger.start", extra=before_task(key, payload, trace_id))
    deps = (deps_factory or build_trigger_deps)()
    try:
        result = handler(change, deps)
    except Exception:
        logger.exception("trigger.failed", extra=after_task(key, payload, status="failed", trace_id=trace_id))
        raise
    finally:
        deps.close()

    logger.info("trigger.finish", extra=after_task(key, payload, status=result.get("status", "processed"), trace_id=trace_id))
    return result


@celery_app.task(bind=True, name="triggers.dispatch", acks_late=True)
def dispatch_change(self, payload: dict[str, Any]) -> TriggerResult:
    logger.debug(
        "trigger.received",
        extra={"event": "trigger.received", "trigger": payload.get("collection")},
    )
    return run_trigger(payload)
