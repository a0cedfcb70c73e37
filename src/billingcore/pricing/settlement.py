from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from billingcore.pricing.models import (
    Balance,
    CreditApplication,
    CreditNote,
    Invoice,
    InvoiceStatus,
)

log = logging.getLogger(__name__)

# tolerance for floating-point accumulation in payment comparisons
PAID_EPSILON = 0.001


class CreditApplicationError(ValueError):
    pass


def applications_for(invoice_id: str, credit_notes: Iterable[CreditNote]) -> list[CreditApplication]:
    return [app for cn in credit_notes for app in cn.applications if app.invoice_id == invoice_id]


def credited_amount(invoice_id: str, credit_notes: Iterable[CreditNote]) -> float:
    return sum((app.amount for app in applications_for(invoice_id, credit_notes)), 0.0)


def compute_balance(invoice: Invoice, credit_applications: Iterable[CreditApplication]) -> Balance:
    """
    Amount still owed on a finalized invoice.

    Only applications referencing this invoice count. A negative `amount_due`
    means the invoice is overpaid and is returned as is.
    """
    total_credited = sum((app.amount for app in credit_applications if app.invoice_id == invoice.id), 0.0)
    total_paid = sum((p.amount for p in invoice.payments), 0.0)
    net_total = invoice.grand_total - total_credited
    return Balance(
        total_paid=total_paid,
        total_credited=total_credited,
        is_fully_paid=total_paid >= net_total - PAID_EPSILON,
        amount_due=invoice.grand_total - total_credited - total_paid,
    )


def invoice_balance(invoice: Invoice, credit_notes: Iterable[CreditNote]) -> Balance:
    return compute_balance(invoice, applications_for(invoice.id, credit_notes))


def invoice_status(invoice: Invoice, credit_notes: Iterable[CreditNote]) -> InvoiceStatus:
    bal = invoice_balance(invoice, credit_notes)
    net_due = invoice.grand_total - bal.total_credited
    if net_due <= PAID_EPSILON or bal.is_fully_paid:
        return InvoiceStatus.PAID
    if bal.total_paid > 0:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.UNPAID


def credit_remaining(credit_note: CreditNote) -> float:
    return credit_note.total - sum((app.amount for app in credit_note.applications), 0.0)


def apply_credit(
    invoice: Invoice,
    credit_note: CreditNote,
    amount: float,
    credit_notes: Iterable[CreditNote],
) -> CreditNote:
    """
    Records `amount` of `credit_note` against `invoice`; returns the updated note.

    `credit_notes` are all notes already on file, used for the invoice's
    current balance. Raises CreditApplicationError for a non-positive amount
    or one exceeding the note's remaining credit or the invoice balance due.
    """
    if amount <= 0:
        raise CreditApplicationError(f"amount to apply must be positive, got {amount}")
    remaining = credit_remaining(credit_note)
    if amount > remaining + PAID_EPSILON:
        raise CreditApplicationError(
            f"amount {amount:.2f} exceeds remaining credit {remaining:.2f} on note {credit_note.id}"
        )
    balance_due = invoice_balance(invoice, credit_notes).amount_due
    if amount > balance_due + PAID_EPSILON:
        raise CreditApplicationError(
            f"amount {amount:.2f} exceeds balance due {balance_due:.2f} on invoice {invoice.id}"
        )
    log.debug("applying %.2f of credit note %s to invoice %s", amount, credit_note.id, invoice.id)
    return replace(
        credit_note,
        applications=credit_note.applications + (CreditApplication(invoice_id=invoice.id, amount=amount),),
    )
