"""Guitar updated: email the client and notify staff when the stage changed."""

from __future__ import annotations

import logging

from factory_portal.database.change_feed import ChangeEvent
from factory_portal.schemas.notifications import StageChangedMetadata, StageChangedPayload
from factory_portal.services.directory_service import resolve_client_email
from factory_portal.services.email_templates import stage_change_email
from factory_portal.triggers.base import (
    TriggerDeps,
    TriggerResult,
    client_stage_label,
    guitar_label,
    run_name,
    skipped,
    stage_label,
    stages_by_id,
)

logger = logging.getLogger(__name__)

HIDDEN_STAGE_LABEL = "In progress"


def handle_guitar_updated(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    before = change.before or {}
    after = change.after or {}
    old_stage_id = before.get("stage_id")
    new_stage_id = after.get("stage_id")
    if old_stage_id == new_stage_id:
        return skipped("stage_unchanged")

    guitar_id = change.doc_id
    run_id = after.get("run_id")
    stages = stages_by_id(deps.db, run_id)
    new_stage = stages.get(new_stage_id)
    old_label = stage_label(stages.get(old_stage_id), str(old_stage_id))
    new_label = stage_label(new_stage, str(new_stage_id))
    label = guitar_label(after.get("model"), after.get("finish"), default="Your guitar")
    name = run_name(deps.db, run_id, "Your run")
    metadata = StageChangedMetadata(
        guitar_model=after.get("model"),
        guitar_finish=after.get("finish"),
        customer_name=after.get("customer_name"),
        stage_name=new_label,
        previous_stage_name=old_label,
        run_name=name,
    )

    fanout = deps.notifications.notify_all(
        StageChangedPayload(
            title=f"{label} moved to {new_label}",
            message=f"{label} ({name}) moved from {old_label} to {new_label}.",
            guitar_id=guitar_id,
            run_id=run_id,
            metadata=metadata,
        )
    )
    result: TriggerResult = {
        "status": "processed",
        "staff_notified": fanout.written,
        "client_notified": False,
        "emails_sent": 0,
    }

    client_uid = after.get("client_uid")
    if not client_uid:
        return result

    client_old_label = client_stage_label(stages.get(old_stage_id), HIDDEN_STAGE_LABEL)
    client_label = client_stage_label(new_stage, HIDDEN_STAGE_LABEL)
    if new_stage is not None and not new_stage.internal_only:
        notification_id = deps.notifications.notify_user(
            client_uid,
            StageChangedPayload(
                title=f"Your {label} is now at {client_label}",
                message=f"Your guitar has moved to {client_label}.",
                guitar_id=guitar_id,
                run_id=run_id,
                metadata=metadata.model_copy(
                    update={"stage_name": client_label, "previous_stage_name": client_old_label}
                ),
            ),
        )
        result["client_notified"] = notification_id is not None

    if not deps.mailer.enabled:
        logger.info("email.mailgun_not_configured", extra={"event": "email.mailgun_not_configured"})
        return result

    email = resolve_client_email(client_uid, deps.directory, deps.db, fallback_email=after.get("customer_email"))
    if not email:
        logger.info(
            "trigger.stage_change.no_client_email",
            extra={"event": "trigger.stage_change.no_client_email", "guitar_id": guitar_id},
        )
        return result

    template = stage_change_email(deps.branding, label, name, client_old_label, client_label)
    if deps.mailer.send_email(email, template.subject, template.html_body, template.text_body):
        result["emails_sent"] = 1
    return result
