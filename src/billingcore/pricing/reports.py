from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from dateutil import parser as dtparser

from billingcore.pricing.models import Bill, CatalogLookup, CreditNote, Invoice, VatSummary
from billingcore.pricing.totals import compute_purchase_totals, compute_totals

log = logging.getLogger(__name__)


def parse_date(value: dt.date | str | None) -> dt.date | None:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return dtparser.parse(s).date()
    except (ValueError, OverflowError):
        return None


def _in_period(value: dt.date | str | None, start: dt.date | None, end: dt.date | None) -> bool:
    if start is None and end is None:
        return True
    d = parse_date(value)
    if d is None:
        return False
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True


def vat_summary(
    invoices: Iterable[Invoice],
    credit_notes: Iterable[CreditNote],
    bills: Iterable[Bill],
    catalog: CatalogLookup | None,
    start: dt.date | str | None = None,
    end: dt.date | str | None = None,
) -> VatSummary:
    """
    VAT position for an optional inclusive issue-date window.

    Payable: VAT on invoices less VAT on credit notes. Reclaimable: VAT on bills.
    """
    start_d = parse_date(start)
    end_d = parse_date(end)

    payable = 0.0
    for inv in invoices:
        if _in_period(inv.issue_date, start_d, end_d):
            payable += compute_totals(inv.line_items, catalog, inv.tax_mode).tax_total
    for cn in credit_notes:
        if _in_period(cn.issue_date, start_d, end_d):
            payable -= compute_totals(cn.line_items, catalog, cn.tax_mode).tax_total

    reclaimable = 0.0
    for bill in bills:
        if _in_period(bill.issue_date, start_d, end_d):
            reclaimable += compute_purchase_totals(bill.line_items, bill.tax_mode).tax_total

    log.debug("vat summary %s..%s: payable=%s reclaimable=%s", start_d, end_d, payable, reclaimable)
    return VatSummary(vat_payable=payable, vat_reclaimable=reclaimable)
