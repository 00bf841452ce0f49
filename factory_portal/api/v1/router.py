"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from factory_portal.api.v1 import board, health, notifications
from factory_portal.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(board.router)
api_router.include_router(notifications.router)


def get_api_router() -> APIRouter:
    return api_router
