from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from billingcore.pricing.models import (
    AddOnOption,
    CatalogItem,
    CatalogLookup,
    CatalogRef,
    ItemType,
    LineItem,
    ManualPrice,
)
from billingcore.pricing.units import CONVERSION_TO_BASE_UNIT, area_in_base_units
from billingcore.utils.numbers import to_float

log = logging.getLogger(__name__)


def dedupe_add_ons(options: Iterable[AddOnOption]) -> List[AddOnOption]:
    """
    Collapses options with the same (lower-cased name, price).

    The first occurrence keeps its position, a later duplicate replaces its record.
    """
    out: Dict[Tuple[str, float], AddOnOption] = {}
    for opt in options:
        out[opt.dedupe_key] = opt
    return list(out.values())


def _raw_add_ons(item: CatalogItem, catalog: CatalogLookup | None) -> List[AddOnOption]:
    raw = list(item.add_on_options)
    if item.parent_id and catalog is not None:
        parent = catalog.get(item.parent_id)
        if parent is not None:
            raw.extend(parent.add_on_options)
    return raw


def available_add_ons(item: CatalogItem, catalog: CatalogLookup | None = None) -> List[AddOnOption]:
    """Add-ons offered for a line: the item's own followed by its parent's, deduplicated."""
    return dedupe_add_ons(_raw_add_ons(item, catalog))


def add_ons_unit_price(item: CatalogItem, selected_ids: Iterable[str], catalog: CatalogLookup | None = None) -> float:
    """Per-unit charge of the selected add-ons; each deduplicated option is charged once."""
    raw = _raw_add_ons(item, catalog)
    deduped = {opt.dedupe_key: opt for opt in dedupe_add_ons(raw)}
    by_id: Dict[str, AddOnOption] = {}
    for opt in raw:
        by_id.setdefault(opt.id, opt)

    # insertion-ordered so the sum is reproducible
    charged: Dict[Tuple[str, float], AddOnOption] = {}
    for add_on_id in selected_ids:
        opt = by_id.get(add_on_id)
        if opt is None:
            # option removed from the catalog since the line was drafted
            continue
        charged.setdefault(opt.dedupe_key, deduped[opt.dedupe_key])
    return float(sum(opt.price for opt in charged.values()))


def _measured_amount(item: CatalogItem, line: LineItem, quantity: float) -> float:
    rate = to_float(item.price)
    length = to_float(line.length)
    width = to_float(line.width)

    if line.unit is not None and item.measurement_unit is not None:
        area = area_in_base_units(length, width, line.unit)
        rate_per_base = rate / CONVERSION_TO_BASE_UNIT[item.measurement_unit]
        amount = area * rate_per_base * quantity
    else:
        # dimensions already in the item's priced unit
        amount = rate * length * width * quantity

    min_price = to_float(item.min_price)
    if min_price and 0 < amount < min_price:
        return min_price
    return amount


def resolve_base_price(item: CatalogItem | None, line: LineItem, catalog: CatalogLookup | None = None) -> float:
    """
    Pre-discount, pre-tax amount of one line.

    `item` is the catalog item the line refers to (None for a manual line);
    `catalog` is only needed to reach the parent item's add-ons.
    Missing numbers count as 0.
    """
    quantity = to_float(line.quantity)

    if item is None:
        price = line.source.amount if isinstance(line.source, ManualPrice) else 0.0
        return to_float(price) * quantity

    if item.type is ItemType.MEASURED:
        amount = _measured_amount(item, line, quantity)
    else:
        amount = to_float(item.price) * quantity

    if line.selected_add_on_ids:
        amount += add_ons_unit_price(item, line.selected_add_on_ids, catalog) * quantity
    return amount


def resolve_catalog_item(line: LineItem, catalog: CatalogLookup | None) -> CatalogItem | None:
    if isinstance(line.source, CatalogRef):
        item = (catalog or {}).get(line.source.item_id)
        if item is None:
            log.debug("catalog item %s not found for line %s; priced as 0", line.source.item_id, line.id)
        return item
    return None


def resolve_line_base_price(line: LineItem, catalog: CatalogLookup | None) -> float:
    return resolve_base_price(resolve_catalog_item(line, catalog), line, catalog)
