"""Shared authorization and error-mapping helpers for API v1 route modules."""

from __future__ import annotations

from fastapi import status

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.config import get_config
from factory_portal.core.dependencies import get_current_caller
from factory_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CrossRunStageError,
    GateRequirementError,
    NotFoundError,
    TransitionError,
    ValidationError,
)


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(authorization: str | None, scopes: list[str]) -> CallerContext:
    token = _extract_bearer_token(authorization)
    caller = get_current_caller(token=token, settings=get_config())
    caller.require(*scopes)
    return caller


def map_auth_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED, str(exc)
    if isinstance(exc, AuthorizationError):
        return status.HTTP_403_FORBIDDEN, str(exc)
    return status.HTTP_401_UNAUTHORIZED, "Unauthorized."


def map_domain_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, (AuthenticationError, AuthorizationError)):
        return map_auth_error(exc)
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, (CrossRunStageError, GateRequirementError)):
        return status.HTTP_409_CONFLICT, str(exc)
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
    if isinstance(exc, TransitionError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error."
