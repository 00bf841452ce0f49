"""Notification inbox endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from factory_portal.api.v1._authz import authorize, map_auth_error, map_domain_error
from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.dependencies import get_db_session
from factory_portal.core.exceptions import FactoryPortalException
from factory_portal.schemas.common import APIEnvelope
from factory_portal.schemas.notifications import NotificationListResponse, NotificationResponse
from factory_portal.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _caller(authorization: str | None) -> CallerContext:
    try:
        return authorize(authorization=authorization, scopes=["notifications.read"])
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(default=30, ge=1, le=200),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NotificationListResponse:
    caller = _caller(authorization)
    service = NotificationService(db=db)
    items = service.list_notifications(caller.user_id, limit=limit)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in items],
        unread=service.unread_count(caller.user_id),
    )


@router.post("/read-all", response_model=APIEnvelope)
def mark_all_read(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> APIEnvelope:
    caller = _caller(authorization)
    updated = NotificationService(db=db).mark_all_as_read(caller.user_id)
    return APIEnvelope(message=f"{updated} notification(s) marked as read.")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NotificationResponse:
    caller = _caller(authorization)
    try:
        notification = NotificationService(db=db).mark_as_read(notification_id, caller.user_id)
    except FactoryPortalException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> None:
    caller = _caller(authorization)
    try:
        NotificationService(db=db).delete_notification(notification_id, caller.user_id)
    except FactoryPortalException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
