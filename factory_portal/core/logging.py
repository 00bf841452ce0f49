"""Structured logging helpers for trigger and pipeline events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    user_id: str | None = None
    run_id: str | None = None
    guitar_id: str | None = None
    trigger: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "user_id": context.user_id,
        "run_id": context.run_id,
        "guitar_id": context.guitar_id,
        "trigger": context.trigger,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
