"""Notification payload and response schemas.

Each notification type carries its own metadata model; the payload union is
discriminated on ``type`` so an unknown type or a misplaced field fails
validation instead of landing in an open dictionary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Metadata(BaseModel):
    model_config = ConfigDict(extra="forbid")


class StageChangedMetadata(_Metadata):
    guitar_model: str | None = None
    guitar_finish: str | None = None
    customer_name: str | None = None
    stage_name: str
    previous_stage_name: str | None = None
    run_name: str | None = None


class NoteAddedMetadata(_Metadata):
    guitar_model: str | None = None
    guitar_finish: str | None = None
    customer_name: str | None = None
    run_name: str | None = None
    author_name: str | None = None
    note_type: str = "update"
    photo_count: int = 0


class NoteCommentMetadata(_Metadata):
    guitar_model: str | None = None
    guitar_finish: str | None = None
    customer_name: str | None = None
    run_name: str
    author_name: str


class RunUpdateMetadata(_Metadata):
    run_name: str | None = None
    author_name: str | None = None


class RunUpdateCommentMetadata(_Metadata):
    run_name: str
    update_title: str
    author_name: str


class PaymentPendingMetadata(_Metadata):
    invoice_title: str
    invoice_id: str
    client_uid: str
    payment_id: str
    amount: float
    currency: str


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=300)
    message: str
    guitar_id: str | None = None
    run_id: str | None = None
    note_id: str | None = None


class StageChangedPayload(_Payload):
    type: Literal["guitar_stage_changed"] = "guitar_stage_changed"
    metadata: StageChangedMetadata


class NoteAddedPayload(_Payload):
    type: Literal["guitar_note_added"] = "guitar_note_added"
    metadata: NoteAddedMetadata


class NoteCommentPayload(_Payload):
    type: Literal["guitar_note_comment"] = "guitar_note_comment"
    metadata: NoteCommentMetadata


class RunUpdatePayload(_Payload):
    type: Literal["run_update"] = "run_update"
    metadata: RunUpdateMetadata


class RunUpdateCommentPayload(_Payload):
    type: Literal["run_update_comment"] = "run_update_comment"
    metadata: RunUpdateCommentMetadata


class PaymentPendingPayload(_Payload):
    type: Literal["payment_pending_approval"] = "payment_pending_approval"
    metadata: PaymentPendingMetadata


NotificationPayload = Annotated[
    Union[
        StageChangedPayload,
        NoteAddedPayload,
        NoteCommentPayload,
        RunUpdatePayload,
        RunUpdateCommentPayload,
        PaymentPendingPayload,
    ],
    Field(discriminator="type"),
]

notification_payload_adapter: TypeAdapter[NotificationPayload] = TypeAdapter(NotificationPayload)


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    read_at: datetime | None = None
    created_at: datetime
    guitar_id: str | None = None
    run_id: str | None = None
    note_id: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="details")


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread: int
