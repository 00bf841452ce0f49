"""Run update created: notify staff, and clients with guitars in the run when visible."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import select

from factory_portal.database.change_feed import ChangeEvent
from factory_portal.database.models import Guitar
from factory_portal.schemas.notifications import RunUpdateMetadata, RunUpdatePayload
from factory_portal.services.directory_service import resolve_client_email
from factory_portal.services.email_templates import run_update_email
from factory_portal.triggers.base import TriggerDeps, TriggerResult, run_name
from factory_portal.utils.validators import preview_text

logger = logging.getLogger(__name__)


def client_uids_for_run(deps: TriggerDeps, run_id: str | None) -> list[str]:
    if not run_id:
        return []
    query = select(Guitar.client_uid).where(Guitar.run_id == run_id, Guitar.client_uid.is_not(None)).distinct()
    return sorted(uid for uid in deps.db.scalars(query) if uid)


def resolve_client_emails(deps: TriggerDeps, client_uids: list[str]) -> list[str]:
    """Look up client emails in a thread pool; one session per lookup.

    Returns distinct addresses in ``client_uids`` order. A failed lookup is
    logged and leaves that client out.
    """
    if not client_uids:
        return []

    def lookup(uid: str) -> str | None:
        try:
            with deps.session_factory() as session:
                return resolve_client_email(uid, deps.directory_for(session), session)
        except Exception:
            logger.exception(
                "trigger.run_update.lookup_failed",
                extra={"event": "trigger.run_update.lookup_failed"},
            )
            return None

    workers = max(1, min(deps.config.EMAIL_LOOKUP_WORKERS, len(client_uids)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="email-lookup") as pool:
        found = list(pool.map(lookup, client_uids))
    return list(dict.fromkeys(email for email in found if email))


def handle_run_update_created(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    update = change.after or {}
    run_id = update.get("run_id")
    title = update.get("title") or "Run update"
    message = update.get("message") or ""
    author_name = update.get("author_name") or "The team"
    name = run_name(deps.db, run_id, "the run")
    metadata = RunUpdateMetadata(run_name=name, author_name=author_name)

    fanout = deps.notifications.notify_all(
        RunUpdatePayload(
            title=f"Run update: {title}",
            message=f"{author_name} posted to {name}: {preview_text(message)}",
            run_id=run_id,
            metadata=metadata,
        )
    )
    result: TriggerResult = {
        "status": "processed",
        "staff_notified": fanout.written,
        "clients_notified": 0,
        "emails_sent": 0,
        "emails_failed": 0,
    }
    if not update.get("visible_to_clients"):
        return result

    client_uids = client_uids_for_run(deps, run_id)
    if not client_uids:
        return result

    clients = deps.notifications.notify_users(
        client_uids,
        RunUpdatePayload(
            title=f"{name}: {title}",
            message=preview_text(message) or title,
            run_id=run_id,
            metadata=metadata,
        ),
    )
    result["clients_notified"] = clients.written

    if not deps.mailer.enabled:
        logger.info("email.mailgun_not_configured", extra={"event": "email.mailgun_not_configured"})
        return result

    template = run_update_email(deps.branding, name, title, author_name, message)
    for email in resolve_client_emails(deps, client_uids):
        try:
            sent = deps.mailer.send_email(email, template.subject, template.html_body, template.text_body)
        except Exception:
            logger.exception(
                "trigger.run_update.email_failed",
                extra={"event": "trigger.run_update.email_failed", "to_email": email},
            )
            sent = False
        result["emails_sent" if sent else "emails_failed"] += 1

    logger.info(
        "trigger.run_update.emailed",
        extra={"event": "trigger.run_update.emailed", "run_id": run_id, "count": result["emails_sent"]},
    )
    return result
