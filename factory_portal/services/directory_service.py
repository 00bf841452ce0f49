"""Resolution of staff principals and client contact details."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from factory_portal.core.enums import STAFF_ROLES
from factory_portal.database.models import ClientProfile
from factory_portal.services.user_directory import MAX_PAGE_SIZE, UserDirectory

logger = logging.getLogger(__name__)


def list_staff_ids(directory: UserDirectory, page_size: int = MAX_PAGE_SIZE) -> set[str]:
    """Return the uids whose role claim is exactly ``staff`` or ``admin``.

    Walks every page of the directory, following the continuation token until
    none is returned. Costs one round trip per ``page_size`` users no matter
    how many of them are staff, and is re-run for every fan-out.
    """
    staff_ids: set[str] = set()
    page_token: str | None = None
    while True:
        page = directory.list_users(max_results=page_size, page_token=page_token)
        for user in page.users:
            if user.role in STAFF_ROLES:
                staff_ids.add(user.uid)
        page_token = page.page_token
        if not page_token:
            break

    logger.debug(
        "directory.staff_resolved",
        extra={"event": "directory.staff_resolved", "count": len(staff_ids)},
    )
    return staff_ids


def resolve_client_email(
    client_uid: str,
    directory: UserDirectory,
    db: Session,
    fallback_email: str | None = None,
) -> str | None:
    """Find a client's email: auth record first, then profile, then ``fallback_email``."""
    try:
        email = directory.get_user(client_uid).email
    except Exception:
        logger.info(
            "directory.client_lookup_failed",
            extra={"event": "directory.client_lookup_failed"},
        )
        email = None
    if email:
        return email

    profile = db.get(ClientProfile, client_uid)
    if profile is not None and profile.email:
        return profile.email
    return fallback_email or None
