"""Health endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter

from factory_portal.core.config import get_config
from factory_portal.database.change_feed import change_feed

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    cfg = get_config()
    return {
        "status": "ok",
        "service": cfg.APP_NAME,
        "version": cfg.APP_VERSION,
        "mail_configured": cfg.mail_configured,
        "change_feed_subscribers": change_feed.subscriber_count,
    }
