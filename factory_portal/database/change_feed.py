"""Committed-row change capture and in-process change feed.

Every ORM flush records a document snapshot (before/after) for each inserted,
updated or deleted row. The snapshots are held on the session until the
transaction commits and are then published, in commit order, to the change
feed the session is bound to (``session.info["change_feed"]``, or the module
default). Rolled back transactions publish nothing.

Subscribers register against a collection (table name) plus an optional
equality filter and receive :class:`ChangeEvent` objects. Delivery is
synchronous on the committing thread; a failing subscriber is logged and does
not prevent delivery to the others.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from factory_portal.core.enums import ChangeKind

logger = logging.getLogger(__name__)

PENDING_KEY = "pending_changes"
FEED_KEY = "change_feed"

Document = dict[str, Any]


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class ChangeEvent:
    """One committed mutation of one row."""

    collection: str
    kind: ChangeKind
    doc_id: str
    before: Document | None = None
    after: Document | None = None
    committed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def current(self) -> Document:
        """The freshest known document state (``after`` unless deleted)."""
        return self.after if self.after is not None else (self.before or {})

    def to_payload(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "kind": self.kind.value,
            "doc_id": self.doc_id,
            "before": self.before,
            "after": self.after,
            "committed_at": self.committed_at,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ChangeEvent":
        return cls(
            collection=payload["collection"],
            kind=ChangeKind(payload["kind"]),
            doc_id=payload["doc_id"],
            before=payload.get("before"),
            after=payload.get("after"),
            committed_at=payload.get("committed_at") or datetime.now(timezone.utc).isoformat(),
        )


ChangeCallback = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


@dataclass
class _Subscription:
    collection: str
    callback: ChangeCallback
    where: dict[str, Any]
    kinds: frozenset[ChangeKind]

    def matches(self, change: ChangeEvent) -> bool:
        if change.collection != self.collection:
            return False
        if self.kinds and change.kind not in self.kinds:
            return False
        if not self.where:
            return True
        for document in (change.before, change.after):
            if document and all(document.get(key) == value for key, value in self.where.items()):
                return True
        return False


class ChangeFeed:
    """Fan committed change events out to subscribers."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(
        self,
        collection: str,
        callback: ChangeCallback,
        where: dict[str, Any] | None = None,
        kinds: Iterable[ChangeKind] | None = None,
    ) -> Unsubscribe:
        """Register ``callback`` and return the function that removes it."""
        subscription = _Subscription(
            collection=collection,
            callback=callback,
            where=dict(where or {}),
            kinds=frozenset(kinds or ()),
        )
        with self._lock:
            token = next(self._ids)
            self._subscriptions[token] = subscription

        def unsubscribe() -> None:
            with self._lock:
                self._subscriptions.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, changes: Iterable[ChangeEvent]) -> None:
        for change in changes:
            with self._lock:
                targets = [sub for sub in self._subscriptions.values() if sub.matches(change)]
            for subscription in targets:
                try:
                    subscription.callback(change)
                except Exception:
                    logger.exception(
                        "change_feed.subscriber_failed",
                        extra={"event": "change_feed.subscriber_failed", "trigger": change.collection},
                    )


change_feed = ChangeFeed()


def feed_for(session_factory: Any) -> ChangeFeed:
    """Return the feed that sessions built by ``session_factory`` publish to."""
    info = getattr(session_factory, "kw", {}).get("info") or {}
    return info.get(FEED_KEY) or change_feed


def to_document(instance: Any) -> Document:
    """Snapshot the loaded column values of an ORM instance."""
    state = inspect(instance)
    document: Document = {}
    for attr in state.mapper.column_attrs:
        if attr.key in state.dict:
            document[attr.key] = _json_safe(copy.deepcopy(state.dict[attr.key]))
    return document


def _before_document(instance: Any) -> Document:
    state = inspect(instance)
    document: Document = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            value = history.deleted[0]
        elif history.unchanged:
            value = history.unchanged[0]
        elif attr.key in state.dict and not history.added:
            value = state.dict[attr.key]
        else:
            continue
        document[attr.key] = _json_safe(copy.deepcopy(value))
    return document


def _doc_id(instance: Any, document: Document) -> str:
    identity = inspect(instance).identity
    if identity:
        return str(identity[0])
    return str(document.get("id") or document.get("uid") or "")


def _record(session: Session, change: ChangeEvent) -> None:
    session.info.setdefault(PENDING_KEY, []).append(change)


def _after_flush(session: Session, flush_context: Any) -> None:
    for instance in session.new:
        after = to_document(instance)
        _record(
            session,
            ChangeEvent(
                collection=instance.__tablename__,
                kind=ChangeKind.CREATED,
                doc_id=_doc_id(instance, after),
                after=after,
            ),
        )
    for instance in session.dirty:
        if not session.is_modified(instance, include_collections=False):
            continue
        after = to_document(instance)
        _record(
            session,
            ChangeEvent(
                collection=instance.__tablename__,
                kind=ChangeKind.UPDATED,
                doc_id=_doc_id(instance, after),
                before=_before_document(instance),
                after=after,
            ),
        )
    for instance in session.deleted:
        before = to_document(instance)
        _record(
            session,
            ChangeEvent(
                collection=instance.__tablename__,
                kind=ChangeKind.DELETED,
                doc_id=_doc_id(instance, before),
                before=before,
            ),
        )


def _after_commit(session: Session) -> None:
    pending = session.info.pop(PENDING_KEY, [])
    if not pending:
        return
    feed: ChangeFeed = session.info.get(FEED_KEY) or change_feed
    feed.publish(pending)


def _after_rollback(session: Session) -> None:
    session.info.pop(PENDING_KEY, None)


_installed = False


def install_change_capture() -> None:
    """Attach capture listeners to every ORM session (idempotent)."""
    global _installed
    if _installed:
        return
    event.listen(Session, "after_flush", _after_flush)
    event.listen(Session, "after_commit", _after_commit)
    event.listen(Session, "after_soft_rollback", lambda session, previous_transaction: _after_rollback(session))
    _installed = True
