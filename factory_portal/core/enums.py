"""Canonical enum values shared by models, services and triggers."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"
    FACTORY = "factory"
    ACCOUNTING = "accounting"
    CLIENT = "client"


# Roles that receive every staff fan-out notification.
STAFF_ROLES = frozenset({UserRole.STAFF.value, UserRole.ADMIN.value})


class NotificationType(str, enum.Enum):
    GUITAR_STAGE_CHANGED = "guitar_stage_changed"
    GUITAR_NOTE_ADDED = "guitar_note_added"
    GUITAR_NOTE_COMMENT = "guitar_note_comment"
    RUN_UPDATE = "run_update"
    RUN_UPDATE_COMMENT = "run_update_comment"
    PAYMENT_PENDING_APPROVAL = "payment_pending_approval"


class NoteType(str, enum.Enum):
    UPDATE = "update"
    MILESTONE = "milestone"
    ISSUE = "issue"
    QUALITY_CHECK = "quality_check"
    STATUS_CHANGE = "status_change"
    GENERAL = "general"


NOTE_TYPE_LABELS: dict[str, str] = {
    NoteType.MILESTONE.value: "Milestone",
    NoteType.QUALITY_CHECK.value: "Quality Check",
    NoteType.ISSUE.value: "Issue",
    NoteType.STATUS_CHANGE.value: "Status Change",
    NoteType.GENERAL.value: "General",
    NoteType.UPDATE.value: "Update",
}


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class ChangeKind(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class MoveOutcome(str, enum.Enum):
    NOOP = "noop"
    COMMITTED = "committed"
    AWAITING_CAPTURE = "awaiting_capture"
