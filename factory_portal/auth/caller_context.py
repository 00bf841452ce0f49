"""Explicit caller identity threaded into services and trigger handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from factory_portal.auth.rbac import require_scopes
from factory_portal.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class CallerContext:
    user_id: str
    role: str | None
    display_name: str | None = None

    @property
    def author_name(self) -> str:
        return self.display_name or "Unknown"

    def require(self, *scopes: str) -> None:
        require_scopes(self.role, scopes)


# Identity used by trigger handlers and maintenance scripts.
SYSTEM_CONTEXT = CallerContext(user_id="system", role="admin", display_name="System")


def from_claims(claims: dict[str, Any]) -> CallerContext:
    """Build caller context from verified token claims."""
    try:
        user_id = str(claims["sub"])
    except KeyError as exc:
        raise AuthenticationError("Token claims are missing the subject.") from exc
    if not user_id:
        raise AuthenticationError("Token claims are missing the subject.")

    role = claims.get("role")
    return CallerContext(
        user_id=user_id,
        role=str(role).lower() if role else None,
        display_name=claims.get("name"),
    )
