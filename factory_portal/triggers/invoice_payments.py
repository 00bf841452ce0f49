"""Invoice updated: notify staff when a client recorded a payment awaiting approval."""

from __future__ import annotations

from typing import Any

from factory_portal.core.enums import ApprovalStatus
from factory_portal.database.change_feed import ChangeEvent
from factory_portal.schemas.notifications import PaymentPendingMetadata, PaymentPendingPayload
from factory_portal.triggers.base import TriggerDeps, TriggerResult, skipped


def new_pending_payments(
    before: list[dict[str, Any]] | None,
    after: list[dict[str, Any]] | None,
) -> list[dict[str, Any]]:
    """Payments present only in ``after`` whose approval is still pending."""
    before_ids = {payment.get("id") for payment in before or [] if payment.get("id")}
    return [
        payment
        for payment in after or []
        if payment.get("approval_status") == ApprovalStatus.PENDING.value and payment.get("id") not in before_ids
    ]


def handle_invoice_updated(change: ChangeEvent, deps: TriggerDeps) -> TriggerResult:
    before = change.before or {}
    after = change.after or {}
    pending = new_pending_payments(before.get("payments"), after.get("payments"))
    if not pending:
        return skipped("no_new_pending_payment")

    # Only the first new pending payment is announced.
    payment = pending[0]
    invoice_title = after.get("title") or "Invoice"
    amount = float(payment.get("amount") or 0)
    currency = payment.get("currency") or after.get("currency") or "AUD"

    fanout = deps.notifications.notify_all(
        PaymentPendingPayload(
            title="Payment recorded – awaiting approval",
            message=(
                f"Client recorded {currency} {amount:,.2f} for invoice: {invoice_title}. "
                "Please review and approve."
            ),
            guitar_id=after.get("guitar_id"),
            metadata=PaymentPendingMetadata(
                invoice_title=invoice_title,
                invoice_id=change.doc_id,
                client_uid=after.get("client_uid") or "",
                payment_id=str(payment.get("id")),
                amount=amount,
                currency=currency,
            ),
        )
    )
    return {"status": "processed", "payment_id": payment.get("id"), "staff_notified": fanout.written}
