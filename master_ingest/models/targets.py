from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from .records import PriceListRecord, StoreRecord

"""Import targets: alias tables, header anchors and field rules.

Each target (store directory, price list) declares:
- a FieldAliasTable: canonical field -> ordered raw header spellings
- header anchor rules: which aliases prove that a row is the header row
- field kinds / defaults applied by the record builder
- the fields overwritten when the natural key already exists

Alias order matters: the resolver takes the first alias with an exact hit,
then falls back to substring matching in the same order.
"""

__all__ = [
    "AnchorRule",
    "FieldKind",
    "ImportTarget",
    "STORE_TARGET",
    "PRICELIST_TARGET",
    "TARGETS",
    "get_target",
]


class FieldKind(Enum):
    """How a raw cell is normalized."""
    TEXT = "text"
    DECIMAL = "decimal"
    DATE = "date"


@dataclass(frozen=True)
class AnchorRule:
    """One way a row can qualify as the header row.

    Every signal must be present in the row (each signal is satisfied by any of
    its aliases) and the row must have more than `wider_than` cells.
    """
    signals: tuple[tuple[str, tuple[str, ...]], ...]
    wider_than: int = 0

    def describe(self) -> str:
        text = "/".join(name for name, _ in self.signals) + " columns"
        if self.wider_than:
            text += f" in a row wider than {self.wider_than} cells"
        return text


@dataclass(frozen=True)
class ImportTarget:
    name: str
    label: str  # plural noun used in operator messages
    table: str
    natural_key: str
    record_type: type
    aliases: Mapping[str, tuple[str, ...]]
    anchor_rules: tuple[AnchorRule, ...]
    updatable_fields: tuple[str, ...]
    field_kinds: Mapping[str, FieldKind] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    finalize: Callable[[dict[str, Any]], dict[str, Any]] | None = None

    def kind_of(self, field_name: str) -> FieldKind:
        return self.field_kinds.get(field_name, FieldKind.TEXT)


# --- Store directory -------------------------------------------------------

STORE_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "oracle_ccid": ("oracle_ccid", "ccid", "store_ccid", "oracle_id", "id", "store_id", "ccid_number"),
    "region": ("region", "area", "zone"),
    "city": ("city", "location", "town"),
    "mall": ("mall", "site", "centre", "center", "complex", "site_name"),
    "division": ("division", "business_unit", "bu", "sector"),
    "brand": ("brand", "label", "concept"),
    "store_name": ("store_name", "name", "shop_name", "branch"),
    "fm_supervisor": ("fm_supervisor", "supervisor", "fs", "fs_new", "area_supervisor"),
    "fm_manager": ("fm_manager", "manager", "fm", "area_manager"),
    "sqm": ("sqm", "size", "area", "sqm_area", "space"),
    "store_status": ("store_status", "status", "state"),
    "store_type": ("store_type", "type", "format"),
    "opening_date": ("opening_date", "open_date", "opened"),
})

# bare "id" is not an anchor
STORE_CCID_ANCHORS = ("oracle_ccid", "ccid", "store_ccid", "store_id", "ccid_number")
STORE_BRAND_ANCHORS = ("brand", "label")

STORE_TARGET = ImportTarget(
    name="stores",
    label="stores",
    table="master_stores",
    natural_key="oracle_ccid",
    record_type=StoreRecord,
    aliases=STORE_ALIASES,
    anchor_rules=(
        AnchorRule(signals=(("Oracle CCID", STORE_CCID_ANCHORS),)),
        # brand only counts on a row wider than 5 cells
        AnchorRule(signals=(("Brand", STORE_BRAND_ANCHORS),), wider_than=5),
    ),
    updatable_fields=(
        "region", "city", "mall", "division", "brand", "store_name",
        "fm_supervisor", "fm_manager", "sqm", "store_status", "store_type", "opening_date",
    ),
    field_kinds=MappingProxyType({
        "sqm": FieldKind.DECIMAL,
        "opening_date": FieldKind.DATE,
    }),
    defaults=MappingProxyType({"store_status": "ACTIVE"}),
)


# --- Price list ------------------------------------------------------------

PRICELIST_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "code": ("code", "item_code", "part_number", "sku", "id", "item_id", "service_code",
             "serial_no", "sr_no", "sl_no"),
    "type": ("type", "category", "group", "class", "item_type", "service_type"),
    "description": ("description", "decription", "details", "item_description", "specification",
                    "item_name", "item", "name", "work_description", "task_description",
                    "scope_of_work", "service_description", "material_description"),
    "unit": ("unit", "uom", "measure", "qty_unit"),
    "material_price": ("material_price", "material", "materials", "mat_price", "supply",
                       "unit_price", "rate", "unit_rate"),
    "labor_price": ("labor_price", "labor", "labour", "lab_price", "installation", "fitting"),
    "total_price": ("total_price", "total", "grand_total", "total_amount", "sum"),
    "remarks": ("remarks", "remark", "note", "notes"),
    "comments": ("comments", "comment", "internal_notes"),
})


def _derive_total_price(values: dict[str, Any]) -> dict[str, Any]:
    """Total defaults to material + labor when missing or zero."""
    if not values.get("total_price"):
        material = values.get("material_price") or Decimal(0)
        labor = values.get("labor_price") or Decimal(0)
        values["total_price"] = material + labor
    return values


PRICELIST_TARGET = ImportTarget(
    name="pricelist",
    label="price items",
    table="price_lists",
    natural_key="code",
    record_type=PriceListRecord,
    aliases=PRICELIST_ALIASES,
    anchor_rules=(
        AnchorRule(signals=(
            ("Item Code", PRICELIST_ALIASES["code"]),
            ("Description", PRICELIST_ALIASES["description"]),
        )),
    ),
    updatable_fields=(
        "type", "description", "unit", "material_price", "labor_price",
        "total_price", "remarks", "comments",
    ),
    field_kinds=MappingProxyType({
        "material_price": FieldKind.DECIMAL,
        "labor_price": FieldKind.DECIMAL,
        "total_price": FieldKind.DECIMAL,
    }),
    finalize=_derive_total_price,
)


TARGETS: Mapping[str, ImportTarget] = MappingProxyType({
    STORE_TARGET.name: STORE_TARGET,
    PRICELIST_TARGET.name: PRICELIST_TARGET,
})


def get_target(name: str) -> ImportTarget:
    try:
        return TARGETS[name]
    except KeyError:
        raise ValueError(f"unknown import target {name!r} (expected one of {sorted(TARGETS)})") from None
