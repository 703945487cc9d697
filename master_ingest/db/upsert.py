from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

from ..models.records import record_columns, record_values

"""Reconciliation writer: transactional bulk upsert keyed by natural key.

One transaction per batch:
    BEGIN
    INSERT INTO <table> (...) VALUES %s
        ON CONFLICT ("<key>") DO UPDATE SET <field> = EXCLUDED.<field>, ...
    COMMIT

Rows whose key already exists only get `updatable_fields` overwritten; new keys
are inserted in full. On any error the transaction is rolled back and the
driver's original exception propagates unchanged, so no partial batch is ever
committed.

The cursor is expected to belong to a connection in autocommit mode; the
transaction boundaries are issued here explicitly.
"""

__all__ = [
    "UpsertBatch",
    "build_upsert_sql",
    "upsert_batch",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertBatch:
    """Records plus the fields eligible for update-on-conflict."""
    table: str
    key: str
    columns: list[str]
    rows: list[tuple[Any, ...]]
    updatable_fields: tuple[str, ...]

    @classmethod
    def from_records(
        cls, table: str, key: str, records: Sequence[Any], updatable_fields: Sequence[str]
    ) -> UpsertBatch:
        """Collapse duplicate keys (last row wins) and flatten to value tuples.

        PostgreSQL rejects an ON CONFLICT statement that touches the same row
        twice, so a key repeated inside one upload keeps its last occurrence.
        """
        if not records:
            return cls(table, key, [], [], tuple(updatable_fields))
        columns = record_columns(type(records[0]))
        key_pos = columns.index(key)
        by_key: dict[Any, tuple[Any, ...]] = {}
        for record in records:
            values = record_values(record)
            by_key[values[key_pos]] = values
        return cls(table, key, columns, list(by_key.values()), tuple(updatable_fields))


def build_upsert_sql(table: str, columns: Sequence[str], key: str, updatable_fields: Sequence[str]) -> str:
    cols_sql = ",".join(f'"{c}"' for c in columns)
    base_sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if not updatable_fields:
        return f'{base_sql} ON CONFLICT ("{key}") DO NOTHING'
    set_sql = ", ".join(f'"{c}" = EXCLUDED."{c}"' for c in updatable_fields)
    return f'{base_sql} ON CONFLICT ("{key}") DO UPDATE SET {set_sql}'


def upsert_batch(
    cursor: Any,
    table: str,
    key: str,
    records: Sequence[Any],
    updatable_fields: Sequence[str],
    page_size: int = 1000,
) -> int:
    """Upsert `records` into `table` atomically.

    Parameters
    ----------
    cursor: psycopg2 cursor (autocommit connection)
    table: target table (validated identifier)
    key: natural key column, also the ON CONFLICT target
    records: canonical records of one type, natural key first
    updatable_fields: columns overwritten when the key already exists
    page_size: execute_values page size

    Returns the number of distinct keys written. Re-raises the original
    exception after ROLLBACK.
    """
    batch = UpsertBatch.from_records(table, key, records, updatable_fields)
    if len(batch.rows) < len(records):
        logger.warning("table=%s collapsed %d duplicate %s value(s) (last row wins)",
                       table, len(records) - len(batch.rows), key)

    start_time = time.time()
    cursor.execute("BEGIN")
    try:
        if batch.rows:
            sql = build_upsert_sql(batch.table, batch.columns, batch.key, batch.updatable_fields)
            execute_values(cursor, sql, batch.rows, page_size=page_size)
        cursor.execute("COMMIT")
    except Exception:
        try:
            cursor.execute("ROLLBACK")
        except Exception as rollback_e:
            # 元の例外を優先して伝播する
            logger.error("table=%s rollback failed: %s", table, rollback_e)
        logger.error("table=%s upsert of %d row(s) rolled back", table, len(batch.rows))
        raise

    logger.info("table=%s upserted %d row(s) in %.3fs", table, len(batch.rows), time.time() - start_time)
    return len(batch.rows)
