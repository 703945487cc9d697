from __future__ import annotations

from decimal import Decimal

import pytest

from master_ingest.models import (
    ImportOutcome,
    ImportStage,
    PriceListRecord,
    StoreRecord,
    get_target,
)
from master_ingest.models.records import record_columns, record_values
from master_ingest.models.targets import PRICELIST_TARGET, STORE_TARGET, TARGETS


def test_targets_registry():
    assert set(TARGETS) == {"stores", "pricelist"}
    assert get_target("stores") is STORE_TARGET
    assert get_target("pricelist") is PRICELIST_TARGET
    with pytest.raises(ValueError, match="unknown import target"):
        get_target("invoices")


@pytest.mark.parametrize("target", [STORE_TARGET, PRICELIST_TARGET])
def test_target_shape(target):
    columns = record_columns(target.record_type)
    assert columns[0] == target.natural_key
    assert set(target.aliases) == set(columns)
    assert target.natural_key not in target.updatable_fields
    assert set(target.updatable_fields) == set(columns[1:])


def test_store_updatable_fields_follow_column_order():
    assert STORE_TARGET.updatable_fields == tuple(record_columns(StoreRecord)[1:])


def test_anchor_rule_describe():
    store_rules = [r.describe() for r in STORE_TARGET.anchor_rules]
    assert store_rules == ["Oracle CCID columns", "Brand columns in a row wider than 5 cells"]
    assert PRICELIST_TARGET.anchor_rules[0].describe() == "Item Code/Description columns"


def test_pricelist_total_derivation():
    derive = PRICELIST_TARGET.finalize
    values = derive({"material_price": Decimal("2.5"), "labor_price": Decimal("1"), "total_price": Decimal(0)})
    assert values["total_price"] == Decimal("3.5")
    kept = derive({"material_price": Decimal("2.5"), "labor_price": Decimal("1"), "total_price": Decimal("9")})
    assert kept["total_price"] == Decimal("9")


def test_record_values_in_column_order():
    rec = PriceListRecord(code="A1", unit="EA")
    values = record_values(rec)
    assert values[0] == "A1"
    assert values[record_columns(PriceListRecord).index("unit")] == "EA"


def test_store_record_defaults():
    rec = StoreRecord(oracle_ccid="1")
    assert rec.sqm == Decimal(0)
    assert rec.store_status == "ACTIVE"
    assert rec.opening_date is None


def test_outcome_response_shapes():
    ok = ImportOutcome(target="stores", stage=ImportStage.COMMITTED, count=2,
                       message="Successfully synced 2 stores.")
    assert not ok.failed
    assert ok.to_response() == {"count": 2, "message": "Successfully synced 2 stores."}

    bad = ImportOutcome(target="stores", stage=ImportStage.DECODED, error="no header",
                        failed_at=ImportStage.HEADER_LOCATED)
    assert bad.failed
    assert bad.to_response() == {"error": "no header"}
