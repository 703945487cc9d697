from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any

"""Canonical record models.

One record per imported spreadsheet row, typed and normalized, ready to be
upserted. The natural key is always the first field so that column order and
conflict target line up for the writer.
"""

__all__ = [
    "StoreRecord",
    "PriceListRecord",
    "record_columns",
    "record_values",
]


@dataclass(frozen=True)
class StoreRecord:
    """Row of the store directory (table master_stores, key oracle_ccid)."""
    oracle_ccid: str
    region: str | None = None
    city: str | None = None
    mall: str | None = None
    division: str | None = None
    brand: str | None = None
    store_name: str | None = None
    fm_supervisor: str | None = None
    fm_manager: str | None = None
    sqm: Decimal = Decimal(0)
    store_status: str = "ACTIVE"
    store_type: str | None = None
    opening_date: date | None = None


@dataclass(frozen=True)
class PriceListRecord:
    """Row of the rate list (table price_lists, key code)."""
    code: str
    type: str | None = None
    description: str | None = None
    unit: str | None = None
    material_price: Decimal = Decimal(0)
    labor_price: Decimal = Decimal(0)
    total_price: Decimal = Decimal(0)
    remarks: str | None = None
    comments: str | None = None


def record_columns(record_type: type) -> list[str]:
    """Column names in declaration order (natural key first)."""
    return [f.name for f in fields(record_type)]


def record_values(record: Any) -> tuple[Any, ...]:
    return astuple(record)
