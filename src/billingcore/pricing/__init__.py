from .base_price import available_add_ons, dedupe_add_ons, resolve_base_price, resolve_line_base_price
from .settlement import CreditApplicationError, apply_credit, compute_balance, invoice_status
from .totals import compute_line, compute_purchase_totals, compute_totals, switch_tax_mode

__all__ = [
    "available_add_ons",
    "dedupe_add_ons",
    "resolve_base_price",
    "resolve_line_base_price",
    "CreditApplicationError",
    "apply_credit",
    "compute_balance",
    "invoice_status",
    "compute_line",
    "compute_purchase_totals",
    "compute_totals",
    "switch_tax_mode",
]
