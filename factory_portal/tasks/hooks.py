"""Lifecycle hooks for trigger task execution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from factory_portal.core.logging import LogContext, build_log_event


def _context(trigger_key: str, change: dict[str, Any], trace_id: str | None) -> LogContext:
    document = change.get("after") or change.get("before") or {}
    return LogContext(
        run_id=document.get("run_id"),
        guitar_id=document.get("guitar_id") or (change.get("doc_id") if change.get("collection") == "guitars" else None),
        trigger=trigger_key,
        trace_id=trace_id,
    )


def before_task(trigger_key: str, change: dict[str, Any], trace_id: str | None = None) -> dict[str, Any]:
    """Build pre-task log payload."""
    return build_log_event(event="trigger.start", context=_context(trigger_key, change, trace_id))


def after_task(
    trigger_key: str,
    change: dict[str, Any],
    status: str,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """Build post-task log payload."""
    return build_log_event(
        event="trigger.finish",
        context=_context(trigger_key, change, trace_id),
        status=status,
        finished_at=datetime.now(timezone.utc).isoformat(),
    )
