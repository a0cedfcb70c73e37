from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from billingcore.pricing.base_price import resolve_line_base_price
from billingcore.pricing.models import (
    CatalogLookup,
    Discount,
    DiscountType,
    LineItem,
    LineTotals,
    PurchaseLine,
    TaxMode,
    Totals,
)
from billingcore.utils.config import EngineSettings
from billingcore.utils.numbers import to_float

log = logging.getLogger(__name__)


def discount_amount(base_price: float, discount: Discount | None) -> float:
    if discount is None:
        return 0.0
    value = to_float(discount.value)
    if discount.type is DiscountType.PERCENTAGE:
        return base_price * (value / 100.0)
    return value


def split_tax(price: float, vat_rate: float | None, tax_mode: TaxMode) -> Tuple[float, float, float]:
    """
    Splits an after-discount price into (net, tax, gross) for the document tax mode.

    INCLUSIVE treats `price` as gross and backs the tax out; NONE ignores the rate.
    """
    rate = to_float(vat_rate)
    if tax_mode is TaxMode.INCLUSIVE:
        exclusive = price / (1.0 + rate / 100.0)
        return exclusive, price - exclusive, price
    if tax_mode is TaxMode.EXCLUSIVE:
        tax = price * (rate / 100.0)
        return price, tax, price + tax
    return price, 0.0, price


def compute_line(line: LineItem, catalog: CatalogLookup | None, tax_mode: TaxMode) -> LineTotals:
    base = resolve_line_base_price(line, catalog)
    disc = discount_amount(base, line.discount)
    # not floored at zero: an oversized discount gives a credit-like negative line
    after = base - disc
    net, tax, gross = split_tax(after, line.vat_rate, tax_mode)
    return LineTotals(
        base_price=base,
        discount_amount=disc,
        price_after_discount=after,
        net=net,
        tax=tax,
        gross=gross,
    )


def line_display_total(line: LineItem, catalog: CatalogLookup | None, tax_mode: TaxMode) -> float:
    """Amount shown on a line row: gross when tax is added on top, the entered price otherwise."""
    lt = compute_line(line, catalog, tax_mode)
    if tax_mode is TaxMode.EXCLUSIVE:
        return lt.gross
    return lt.price_after_discount


def compute_totals(line_items: Iterable[LineItem], catalog: CatalogLookup | None, tax_mode: TaxMode) -> Totals:
    """Subtotal, tax and grand total of a sales document (invoice, quote, credit note)."""
    subtotal = 0.0
    tax_total = 0.0
    grand_total = 0.0
    n = 0
    for line in line_items:
        lt = compute_line(line, catalog, tax_mode)
        subtotal += lt.net
        tax_total += lt.tax
        grand_total += lt.gross
        n += 1
    log.debug("totals over %d lines (%s): %s / %s / %s", n, tax_mode.value, subtotal, tax_total, grand_total)
    return Totals(subtotal=subtotal, tax_total=tax_total, grand_total=grand_total)


def compute_purchase_totals(lines: Iterable[PurchaseLine], tax_mode: TaxMode) -> Totals:
    """Totals of a bill or purchase order: quantity x unit price per line, no discounts."""
    subtotal = 0.0
    tax_total = 0.0
    grand_total = 0.0
    for line in lines:
        price = to_float(line.quantity) * to_float(line.unit_price)
        net, tax, gross = split_tax(price, line.vat_rate, tax_mode)
        subtotal += net
        tax_total += tax
        grand_total += gross
    return Totals(subtotal=subtotal, tax_total=tax_total, grand_total=grand_total)


def switch_tax_mode(line_items: Sequence[LineItem], new_mode: TaxMode, settings: EngineSettings) -> List[LineItem]:
    """
    Line items to store after the document tax mode changes.

    Rates are left as they are when switching to NONE (the calculation ignores
    them); leaving NONE puts the default rate back on lines still at 0.
    """
    if new_mode is TaxMode.NONE:
        return list(line_items)
    out: List[LineItem] = []
    for line in line_items:
        if to_float(line.vat_rate) == 0.0:
            line = replace(line, vat_rate=settings.default_vat_rate)
        out.append(line)
    return out


def format_amount(value: float, currency_symbol: str = "") -> str:
    """Two-decimal display string; rounds like `toFixed(2)` in the web client rather than truncating."""
    return f"{currency_symbol}{value:.2f}"
