"""Plain mapping records (a caller's store, a YAML or JSON file) to the typed model.

Keys are accepted in snake_case or in the camelCase the web client stores.
Missing or malformed values fall back to permissive defaults.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

import yaml

from billingcore.pricing.models import (
    AddOnOption,
    Bill,
    CatalogItem,
    CatalogRef,
    CreditApplication,
    CreditNote,
    Discount,
    DiscountType,
    Invoice,
    ItemType,
    LineItem,
    ManualPrice,
    MeasurementUnit,
    Payment,
    PurchaseLine,
    TaxMode,
)
from billingcore.utils.config import EngineSettings
from billingcore.utils.numbers import to_float

E = TypeVar("E", bound=Enum)


class RecordError(ValueError):
    pass


def _get(rec: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in rec and rec[k] is not None:
            return rec[k]
    return default


def _opt_float(v: Any) -> float | None:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return to_float(v)


def _opt_str(v: Any) -> str | None:
    return None if v is None else str(v)


def _enum(cls: Type[E], v: Any, default: E | None) -> E | None:
    if v is None:
        return default
    if isinstance(v, cls):
        return v
    try:
        return cls(str(v).strip().lower())
    except ValueError:
        return default


def _mapping(v: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(v, Mapping):
        raise RecordError(f"{what} must be a mapping, got {type(v).__name__}")
    return v


def _records(v: Any, what: str) -> List[Mapping[str, Any]]:
    return [_mapping(r, what) for r in (v or [])]


def load_record_file(path: Path) -> Dict[str, Any]:
    """Reads a YAML (or JSON) record file whose top level is a mapping."""
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    return dict(_mapping(data, f"record file {path}"))


def parse_add_on(rec: Mapping[str, Any]) -> AddOnOption:
    return AddOnOption(
        id=str(_get(rec, "id", default="")),
        name=str(_get(rec, "name", default="")),
        price=to_float(_get(rec, "price")),
    )


def parse_catalog_item(rec: Mapping[str, Any]) -> CatalogItem:
    return CatalogItem(
        id=str(_get(rec, "id", default="")),
        name=str(_get(rec, "name", default="")),
        type=_enum(ItemType, _get(rec, "type"), ItemType.FIXED),
        price=to_float(_get(rec, "price", "rate")),
        measurement_unit=_enum(MeasurementUnit, _get(rec, "measurement_unit", "measurementUnit"), None),
        vat_rate=_opt_float(_get(rec, "vat_rate", "vatRate")),
        min_price=_opt_float(_get(rec, "min_price", "minPrice")),
        parent_id=_opt_str(_get(rec, "parent_id", "parentId")),
        add_on_options=tuple(
            parse_add_on(r) for r in _records(_get(rec, "add_on_options", "addOnOptions"), "add-on option")
        ),
    )


def parse_catalog(recs: Iterable[Mapping[str, Any]] | None) -> Dict[str, CatalogItem]:
    items = (parse_catalog_item(r) for r in _records(recs, "catalog item"))
    return {item.id: item for item in items}


def parse_discount(rec: Any) -> Discount:
    if not isinstance(rec, Mapping):
        return Discount()
    return Discount(
        type=_enum(DiscountType, _get(rec, "type"), DiscountType.FIXED),
        value=to_float(_get(rec, "value")),
    )


def parse_line_item(rec: Mapping[str, Any], settings: EngineSettings) -> LineItem:
    """A line without a catalog reference is a manual line priced from `price`."""
    item_id = _get(rec, "catalog_item_id", "inventoryItemId")
    source = CatalogRef(str(item_id)) if item_id else ManualPrice(_opt_float(_get(rec, "price")))
    return LineItem(
        id=str(_get(rec, "id", default="")),
        source=source,
        description=str(_get(rec, "description", default="")),
        quantity=_opt_float(_get(rec, "quantity")),
        vat_rate=to_float(_get(rec, "vat_rate", "vatRate"), settings.default_vat_rate),
        discount=parse_discount(_get(rec, "discount")),
        length=_opt_float(_get(rec, "length")),
        width=_opt_float(_get(rec, "width")),
        unit=_enum(MeasurementUnit, _get(rec, "unit"), None),
        selected_add_on_ids=tuple(
            dict.fromkeys(str(x) for x in (_get(rec, "selected_add_on_ids", "selectedAddOnIds") or []))
        ),
    )


def _line_items(rec: Mapping[str, Any], settings: EngineSettings) -> tuple[LineItem, ...]:
    return tuple(parse_line_item(r, settings) for r in _records(_get(rec, "line_items", "lineItems"), "line item"))


def _tax_mode(rec: Mapping[str, Any]) -> TaxMode:
    return _enum(TaxMode, _get(rec, "tax_mode", "taxMode"), TaxMode.EXCLUSIVE)


def parse_payment(rec: Mapping[str, Any]) -> Payment:
    return Payment(
        amount=to_float(_get(rec, "amount")),
        date=_get(rec, "date"),
        method=_get(rec, "method"),
    )


def parse_invoice(rec: Mapping[str, Any], settings: EngineSettings) -> Invoice:
    return Invoice(
        id=str(_get(rec, "id", default="")),
        line_items=_line_items(rec, settings),
        tax_mode=_tax_mode(rec),
        grand_total=to_float(_get(rec, "grand_total", "total")),
        payments=tuple(parse_payment(r) for r in _records(_get(rec, "payments"), "payment")),
        customer_name=str(_get(rec, "customer_name", "customerName", default="")),
        number=str(_get(rec, "number", "invoiceNumber", default="")),
        issue_date=_get(rec, "issue_date", "issueDate"),
    )


def parse_credit_note(rec: Mapping[str, Any], settings: EngineSettings) -> CreditNote:
    apps = tuple(
        CreditApplication(
            invoice_id=str(_get(r, "invoice_id", "invoiceId", default="")),
            amount=to_float(_get(r, "amount")),
        )
        for r in _records(_get(rec, "applications"), "credit application")
    )
    return CreditNote(
        id=str(_get(rec, "id", default="")),
        line_items=_line_items(rec, settings),
        tax_mode=_tax_mode(rec),
        total=to_float(_get(rec, "total", "grand_total")),
        applications=apps,
        customer_name=str(_get(rec, "customer_name", "customerName", default="")),
        number=str(_get(rec, "number", "creditNoteNumber", default="")),
        issue_date=_get(rec, "issue_date", "issueDate"),
    )


def parse_purchase_line(rec: Mapping[str, Any]) -> PurchaseLine:
    return PurchaseLine(
        id=str(_get(rec, "id", default="")),
        description=str(_get(rec, "description", default="")),
        quantity=_opt_float(_get(rec, "quantity")),
        unit_price=_opt_float(_get(rec, "unit_price", "unitPrice")),
        vat_rate=to_float(_get(rec, "vat_rate", "vatRate")),
    )


def parse_bill(rec: Mapping[str, Any]) -> Bill:
    return Bill(
        id=str(_get(rec, "id", default="")),
        line_items=tuple(parse_purchase_line(r) for r in _records(_get(rec, "line_items", "lineItems"), "bill line")),
        tax_mode=_tax_mode(rec),
        supplier_name=str(_get(rec, "supplier_name", "supplierName", default="")),
        reference=str(_get(rec, "reference", default="")),
        issue_date=_get(rec, "issue_date", "issueDate"),
    )
