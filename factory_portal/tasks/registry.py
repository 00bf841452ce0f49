"""Trigger registry mapping collection mutations to handlers."""

from __future__ import annotations

from collections.abc import Callable

from factory_portal.core.enums import ChangeKind
from factory_portal.database.change_feed import ChangeEvent
from factory_portal.triggers.base import TriggerDeps, TriggerResult
from factory_portal.triggers.comments import handle_note_comment_created, handle_run_update_comment_created
from factory_portal.triggers.invoice_payments import handle_invoice_updated
from factory_portal.triggers.notes import handle_note_created
from factory_portal.triggers.run_updates import handle_run_update_created
from factory_portal.triggers.stage_change import handle_guitar_updated

TriggerHandler = Callable[[ChangeEvent, TriggerDeps], TriggerResult]


def trigger_key(collection: str, kind: ChangeKind | str) -> str:
    return f"{collection}.{ChangeKind(kind).value}"


class TriggerRegistry:
    """Mutable registry of trigger handlers keyed by ``collection.kind``."""

    def __init__(self) -> None:
        self._handlers: dict[str, TriggerHandler] = {}

    def register(self, collection: str, kind: ChangeKind, handler: TriggerHandler) -> None:
        self._handlers[trigger_key(collection, kind)] = handler

    def get(self, key: str) -> TriggerHandler:
        if key not in self._handlers:
            raise KeyError(f"Unknown trigger key: {key}")
        return self._handlers[key]

    def keys(self) -> list[str]:
        return sorted(self._handlers.keys())

    def bindings(self) -> list[tuple[str, ChangeKind]]:
        pairs = []
        for key in self.keys():
            collection, kind = key.rsplit(".", 1)
            pairs.append((collection, ChangeKind(kind)))
        return pairs


def build_default_registry() -> TriggerRegistry:
    registry = TriggerRegistry()
    registry.register("guitars", ChangeKind.UPDATED, handle_guitar_updated)
    registry.register("invoices", ChangeKind.UPDATED, handle_invoice_updated)
    registry.register("note_comments", ChangeKind.CREATED, handle_note_comment_created)
    registry.register("run_update_comments", ChangeKind.CREATED, handle_run_update_comment_created)
    registry.register("run_updates", ChangeKind.CREATED, handle_run_update_created)
    registry.register("guitar_notes", ChangeKind.CREATED, handle_note_created)
    return registry


default_registry = build_default_registry()
