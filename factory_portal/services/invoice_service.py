"""Invoice creation and payment recording."""

from __future__ import annotations

from typing import Any

from factory_portal.auth.caller_context import CallerContext
from factory_portal.core.enums import ApprovalStatus, InvoiceStatus, UserRole
from factory_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from factory_portal.database.models import Invoice, utcnow
from factory_portal.services.base_service import BaseService
from factory_portal.utils.ids import new_id
from factory_portal.utils.validators import sanitize_text


def _invoice_status(invoice: Invoice, payments: list[dict[str, Any]]) -> str:
    paid = sum(
        float(payment.get("amount") or 0)
        for payment in payments
        if payment.get("approval_status") == ApprovalStatus.APPROVED.value
    )
    if paid <= 0:
        return InvoiceStatus.PENDING.value
    if paid >= invoice.amount:
        return InvoiceStatus.PAID.value
    return InvoiceStatus.PARTIALLY_PAID.value


class InvoiceService(BaseService):
    """Service for invoice CRUD and the payments array."""

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice not found: {invoice_id}")
        return invoice

    def create_invoice(
        self,
        client_uid: str,
        amount: float,
        context: CallerContext,
        title: str = "Invoice",
        currency: str = "AUD",
        guitar_id: str | None = None,
    ) -> Invoice:
        context.require("invoices.manage")
        if amount < 0:
            raise ValidationError("Invoice amount must be >= 0.")
        invoice = Invoice(
            client_uid=client_uid,
            guitar_id=guitar_id,
            title=sanitize_text(title, 300) or "Invoice",
            amount=amount,
            currency=currency.upper(),
            payments=[],
        )
        self.db.add(invoice)
        self.commit()
        return invoice

    def record_payment(
        self,
        invoice_id: str,
        amount: float,
        context: CallerContext,
        method: str = "bank_transfer",
        currency: str | None = None,
    ) -> dict[str, Any]:
        """Append a payment to the invoice.

        Client-submitted payments start as ``pending`` approval; payments
        recorded by accounting staff are approved immediately.
        """
        context.require("payments.record")
        if amount <= 0:
            raise ValidationError("Payment amount must be > 0.")
        invoice = self.get_invoice(invoice_id)
        is_client = context.role == UserRole.CLIENT.value
        if is_client and invoice.client_uid != context.user_id:
            raise AuthorizationError("Clients can only record payments on their own invoices.")

        payment = {
            "id": new_id(),
            "amount": amount,
            "currency": (currency or invoice.currency).upper(),
            "method": method,
            "paid_at": utcnow().isoformat(),
            "recorded_by": context.user_id,
            "approval_status": ApprovalStatus.PENDING.value if is_client else ApprovalStatus.APPROVED.value,
        }
        # Reassign so the JSON column registers as changed.
        payments = [*(invoice.payments or []), payment]
        invoice.payments = payments
        invoice.status = _invoice_status(invoice, payments)
        self.commit()
        return payment

    def review_payment(self, invoice_id: str, payment_id: str, approved: bool, context: CallerContext) -> dict[str, Any]:
        context.require("invoices.manage")
        invoice = self.get_invoice(invoice_id)
        payments = [dict(payment) for payment in invoice.payments or []]
        for payment in payments:
            if payment.get("id") == payment_id:
                payment["approval_status"] = (
                    ApprovalStatus.APPROVED.value if approved else ApprovalStatus.REJECTED.value
                )
                invoice.payments = payments
                invoice.status = _invoice_status(invoice, payments)
                self.commit()
                return payment
        raise NotFoundError(f"Payment not found: {payment_id}")
