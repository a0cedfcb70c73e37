from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Tuple, Union


class ItemType(str, Enum):
    FIXED = "fixed"
    MEASURED = "measured"


class MeasurementUnit(str, Enum):
    # area
    SQ_M = "sq_m"
    SQ_FT = "sq_ft"
    SQ_CM = "sq_cm"
    SQ_MM = "sq_mm"
    SQ_IN = "sq_in"
    # linear
    M = "m"
    CM = "cm"
    MM = "mm"
    FT = "ft"
    IN = "in"


class TaxMode(str, Enum):
    EXCLUSIVE = "exclusive"
    INCLUSIVE = "inclusive"
    NONE = "none"


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class InvoiceStatus(str, Enum):
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    UNPAID = "unpaid"


@dataclass(frozen=True)
class AddOnOption:
    id: str
    name: str
    price: float = 0.0

    @property
    def dedupe_key(self) -> Tuple[str, float]:
        return (self.name.lower(), float(self.price))


@dataclass(frozen=True)
class Discount:
    type: DiscountType = DiscountType.FIXED
    value: float = 0.0


@dataclass(frozen=True)
class CatalogItem:
    """
    Sellable inventory item.

    For MEASURED items `price` is the rate per `measurement_unit`;
    for FIXED items it is the flat unit price.
    """

    id: str
    name: str = ""
    type: ItemType = ItemType.FIXED
    price: float = 0.0
    measurement_unit: MeasurementUnit | None = None
    vat_rate: float | None = None
    min_price: float | None = None
    parent_id: str | None = None
    add_on_options: Tuple[AddOnOption, ...] = ()


@dataclass(frozen=True)
class CatalogRef:
    item_id: str


@dataclass(frozen=True)
class ManualPrice:
    amount: float | None = 0.0


PricingSource = Union[CatalogRef, ManualPrice]
CatalogLookup = Mapping[str, CatalogItem]


@dataclass(frozen=True)
class LineItem:
    id: str
    source: PricingSource = field(default_factory=ManualPrice)
    description: str = ""
    quantity: float | None = 1.0
    vat_rate: float | None = 0.0
    discount: Discount = field(default_factory=Discount)
    length: float | None = None
    width: float | None = None
    unit: MeasurementUnit | None = None
    selected_add_on_ids: Tuple[str, ...] = ()

    @classmethod
    def manual(
        cls,
        id: str,
        price: float | None,
        *,
        default_vat_rate: float,
        quantity: float = 1.0,
        description: str = "",
        discount: Discount | None = None,
    ) -> "LineItem":
        return cls(
            id=id,
            source=ManualPrice(price),
            description=description,
            quantity=quantity,
            vat_rate=default_vat_rate,
            discount=discount or Discount(),
        )

    @classmethod
    def from_catalog(
        cls,
        id: str,
        item: CatalogItem,
        *,
        default_vat_rate: float,
        quantity: float = 1.0,
    ) -> "LineItem":
        """New line picked from the catalog: name as description, item VAT or the default, no add-ons."""
        unit = None
        if item.type is ItemType.MEASURED:
            unit = item.measurement_unit or MeasurementUnit.M
        return cls(
            id=id,
            source=CatalogRef(item.id),
            description=item.name,
            quantity=quantity,
            vat_rate=item.vat_rate if item.vat_rate is not None else default_vat_rate,
            unit=unit,
        )


@dataclass(frozen=True)
class PurchaseLine:
    id: str
    description: str = ""
    quantity: float | None = 1.0
    unit_price: float | None = 0.0
    vat_rate: float | None = 0.0


@dataclass(frozen=True)
class Payment:
    amount: float
    date: dt.date | str | None = None
    method: str | None = None


@dataclass(frozen=True)
class CreditApplication:
    invoice_id: str
    amount: float


@dataclass(frozen=True)
class Invoice:
    id: str
    line_items: Tuple[LineItem, ...] = ()
    tax_mode: TaxMode = TaxMode.EXCLUSIVE
    grand_total: float = 0.0
    payments: Tuple[Payment, ...] = ()
    customer_name: str = ""
    number: str = ""
    issue_date: dt.date | str | None = None


@dataclass(frozen=True)
class CreditNote:
    id: str
    line_items: Tuple[LineItem, ...] = ()
    tax_mode: TaxMode = TaxMode.EXCLUSIVE
    total: float = 0.0
    applications: Tuple[CreditApplication, ...] = ()
    customer_name: str = ""
    number: str = ""
    issue_date: dt.date | str | None = None


@dataclass(frozen=True)
class Bill:
    id: str
    line_items: Tuple[PurchaseLine, ...] = ()
    tax_mode: TaxMode = TaxMode.EXCLUSIVE
    supplier_name: str = ""
    reference: str = ""
    issue_date: dt.date | str | None = None


@dataclass(frozen=True)
class LineTotals:
    base_price: float
    discount_amount: float
    price_after_discount: float
    net: float
    tax: float
    gross: float


@dataclass(frozen=True)
class Totals:
    subtotal: float = 0.0
    tax_total: float = 0.0
    grand_total: float = 0.0

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(
            subtotal=self.subtotal + other.subtotal,
            tax_total=self.tax_total + other.tax_total,
            grand_total=self.grand_total + other.grand_total,
        )


@dataclass(frozen=True)
class Balance:
    total_paid: float
    total_credited: float
    is_fully_paid: bool
    amount_due: float


@dataclass(frozen=True)
class VatSummary:
    vat_payable: float
    vat_reclaimable: float

    @property
    def net_vat_position(self) -> float:
        return self.vat_payable - self.vat_reclaimable
