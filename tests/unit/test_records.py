from __future__ import annotations

from pathlib import Path

import pytest

from billingcore.pricing.models import (
    CatalogRef,
    DiscountType,
    ItemType,
    ManualPrice,
    MeasurementUnit,
    TaxMode,
)
from billingcore.pricing.records import (
    RecordError,
    load_record_file,
    parse_catalog,
    parse_credit_note,
    parse_invoice,
    parse_line_item,
)
from billingcore.utils.config import EngineSettings

SETTINGS = EngineSettings(default_vat_rate=20.0, currency_symbol="£")


def test_camel_case_catalog_records() -> None:
    catalog = parse_catalog(
        [
            {
                "id": "vinyl",
                "name": "Vinyl",
                "type": "measured",
                "price": "12,50",
                "measurementUnit": "sq_m",
                "minPrice": 15,
                "parentId": "banner",
                "addOnOptions": [{"id": "lam", "name": "Lamination", "price": 5}],
            }
        ]
    )
    item = catalog["vinyl"]
    assert item.type is ItemType.MEASURED
    assert item.price == 12.5
    assert item.measurement_unit is MeasurementUnit.SQ_M
    assert item.min_price == 15.0
    assert item.parent_id == "banner"
    assert item.vat_rate is None
    assert item.add_on_options[0].name == "Lamination"


def test_line_item_pricing_source() -> None:
    manual = parse_line_item({"id": "l1", "price": 9.5, "quantity": 2}, SETTINGS)
    assert manual.source == ManualPrice(9.5)
    linked = parse_line_item({"id": "l2", "inventoryItemId": "vinyl", "price": 99}, SETTINGS)
    assert linked.source == CatalogRef("vinyl")


def test_line_item_defaults_are_permissive() -> None:
    line = parse_line_item(
        {"id": "l1", "discount": {"type": "percentage"}, "unit": "furlong", "selectedAddOnIds": ["a", "b", "a"]},
        SETTINGS,
    )
    assert line.vat_rate == 20.0
    assert line.quantity is None
    assert line.discount.type is DiscountType.PERCENTAGE
    assert line.discount.value == 0.0
    assert line.unit is None
    assert line.selected_add_on_ids == ("a", "b")


def test_invoice_and_credit_note_records() -> None:
    inv = parse_invoice(
        {
            "id": "inv-1",
            "taxMode": "inclusive",
            "total": 120,
            "payments": [{"amount": "20", "date": "2024-01-02", "method": "Cash"}],
            "lineItems": [{"id": "l1", "price": 120, "vatRate": 20}],
        },
        SETTINGS,
    )
    assert inv.tax_mode is TaxMode.INCLUSIVE
    assert inv.grand_total == 120.0
    assert inv.payments[0].amount == 20.0
    assert len(inv.line_items) == 1

    cn = parse_credit_note({"id": "cn-1", "total": 30, "applications": [{"invoiceId": "inv-1", "amount": 10}]}, SETTINGS)
    assert cn.applications[0].invoice_id == "inv-1"
    assert cn.tax_mode is TaxMode.EXCLUSIVE


def test_non_mapping_records_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(RecordError):
        parse_invoice({"id": "inv-1", "lineItems": ["oops"]}, SETTINGS)

    path = tmp_path / "doc.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(RecordError):
        load_record_file(path)


def test_load_record_file_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "doc.json"
    path.write_text('{"document": {"id": "q-1", "taxMode": "none"}}', encoding="utf-8")
    assert load_record_file(path)["document"]["taxMode"] == "none"


def test_integer_ids_keep_parent_add_ons() -> None:
    from billingcore.pricing.base_price import resolve_line_base_price

    catalog = parse_catalog(
        [
            {"id": 1, "addOnOptions": [{"id": "lam", "name": "Lamination", "price": 5}]},
            {"id": 2, "price": 10, "parent_id": 1},
        ]
    )
    assert catalog["2"].parent_id == "1"
    line = parse_line_item({"id": "l1", "catalog_item_id": 2, "quantity": 1, "selected_add_on_ids": ["lam"]}, SETTINGS)
    assert resolve_line_base_price(line, catalog) == 15.0
