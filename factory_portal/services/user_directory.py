"""Authentication directory backed by the ``user_accounts`` table.

Mirrors the surface of a hosted auth service: paginated full-user listing
with an opaque continuation token, lookup by uid and lookup by email.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import func, select

from factory_portal.core.exceptions import NotFoundError, ValidationError
from factory_portal.database.models import UserAccount
from factory_portal.services.base_service import BaseService

MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class UserRecord:
    uid: str
    email: str | None = None
    display_name: str | None = None
    role: str | None = None
    disabled: bool = False


@dataclass(frozen=True)
class UserPage:
    users: list[UserRecord]
    page_token: str | None = None


class UserDirectory(Protocol):
    def list_users(self, max_results: int = MAX_PAGE_SIZE, page_token: str | None = None) -> UserPage: ...

    def get_user(self, uid: str) -> UserRecord: ...


def encode_page_token(last_uid: str) -> str:
    return base64.urlsafe_b64encode(last_uid.encode("utf-8")).decode("ascii")


def decode_page_token(page_token: str) -> str:
    try:
        return base64.urlsafe_b64decode(page_token.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise ValidationError("Invalid page token.") from exc


def _to_record(row: UserAccount) -> UserRecord:
    return UserRecord(
        uid=row.uid,
        email=row.email,
        display_name=row.display_name,
        role=row.role,
        disabled=bool(row.disabled),
    )


class AccountDirectory(BaseService):
    """Keyset-paginated directory over user accounts."""

    def list_users(self, max_results: int = MAX_PAGE_SIZE, page_token: str | None = None) -> UserPage:
        if not 1 <= max_results <= MAX_PAGE_SIZE:
            raise ValidationError(f"max_results must be between 1 and {MAX_PAGE_SIZE}.")

        query = select(UserAccount).order_by(UserAccount.uid)
        if page_token:
            query = query.where(UserAccount.uid > decode_page_token(page_token))
        # One extra row tells us whether another page exists.
        rows = list(self.db.scalars(query.limit(max_results + 1)))

        has_more = len(rows) > max_results
        page = rows[:max_results]
        next_token = encode_page_token(page[-1].uid) if has_more and page else None
        return UserPage(users=[_to_record(row) for row in page], page_token=next_token)

    def get_user(self, uid: str) -> UserRecord:
        row = self.db.get(UserAccount, uid)
        if row is None:
            raise NotFoundError(f"User not found: {uid}")
        return _to_record(row)

    def get_user_by_email(self, email: str) -> UserRecord:
        normalized = (email or "").strip().lower()
        row = self.db.scalars(
            select(UserAccount).where(func.lower(UserAccount.email) == normalized).limit(1)
        ).first()
        if row is None:
            raise NotFoundError(f"User not found for email: {email}")
        return _to_record(row)

    def set_role(self, uid: str, role: str | None) -> UserRecord:
        row = self.db.get(UserAccount, uid)
        if row is None:
            raise NotFoundError(f"User not found: {uid}")
        row.role = role
        self.commit()
        return _to_record(row)
