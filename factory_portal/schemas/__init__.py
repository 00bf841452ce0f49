"""Pydantic schema package for API contracts and notification payloads."""

from factory_portal.schemas.board import BoardResponse, GuitarCard, MoveRequest, MoveResponse, StageColumnResponse
from factory_portal.schemas.common import APIEnvelope, ErrorEnvelope
from factory_portal.schemas.notifications import (
    NoteAddedPayload,
    NoteCommentPayload,
    NotificationListResponse,
    NotificationPayload,
    NotificationResponse,
    PaymentPendingPayload,
    RunUpdateCommentPayload,
    RunUpdatePayload,
    StageChangedPayload,
    notification_payload_adapter,
)

__all__ = [
    "APIEnvelope",
    "BoardResponse",
    "ErrorEnvelope",
    "GuitarCard",
    "MoveRequest",
    "MoveResponse",
    "NoteAddedPayload",
    "NoteCommentPayload",
    "NotificationListResponse",
    "NotificationPayload",
    "NotificationResponse",
    "PaymentPendingPayload",
    "RunUpdateCommentPayload",
    "RunUpdatePayload",
    "StageChangedPayload",
    "StageColumnResponse",
    "notification_payload_adapter",
]
