from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from typing import Any

from ..models.targets import FieldKind, ImportTarget
from ..tabular.headers import HeaderMap
from ..tabular.normalizers import NULL_TOKENS, parse_date, parse_price, trim_or_null

"""Record builder: data rows below the header -> canonical records.

Rows without a usable natural key (blank trailing rows, footers, '#N/A'
placeholders) are dropped silently; they simply do not count. Nothing is
written here.
"""

__all__ = [
    "build_records",
]

logger = logging.getLogger(__name__)


def _cell(row: Sequence[str], index: int | None) -> str | None:
    if index is None or index >= len(row):
        return None
    return row[index]


def _normalize(kind: FieldKind, raw: str | None, null_tokens: Collection[str]) -> Any:
    if kind is FieldKind.DECIMAL:
        return parse_price(raw, null_tokens)
    if kind is FieldKind.DATE:
        return parse_date(raw, null_tokens)
    return trim_or_null(raw, null_tokens)


def build_records(
    grid: Sequence[Sequence[str]],
    header_index: int,
    header_map: HeaderMap,
    target: ImportTarget,
    null_tokens: Collection[str] = NULL_TOKENS,
) -> list[Any]:
    """Build one record per data row carrying a natural key.

    Args:
        grid: decoded RawGrid
        header_index: row index returned by locate_header
        header_map: field -> column index from resolve_headers
        target: import target (record type, field kinds, defaults)
        null_tokens: placeholder cell values treated as empty

    Returns:
        Records in source row order (duplicates of a key are kept; the writer
        collapses them)
    """
    key_field = target.natural_key
    key_column = header_map.get(key_field)
    records: list[Any] = []
    dropped = 0

    for row in grid[header_index + 1:]:
        key = trim_or_null(_cell(row, key_column), null_tokens)
        if key is None:
            dropped += 1
            continue

        values: dict[str, Any] = {key_field: key}
        for field_name in target.aliases:
            if field_name == key_field:
                continue
            raw = _cell(row, header_map.get(field_name))
            value = _normalize(target.kind_of(field_name), raw, null_tokens)
            if value is None and field_name in target.defaults:
                value = target.defaults[field_name]
            values[field_name] = value

        if target.finalize is not None:
            values = target.finalize(values)
        records.append(target.record_type(**values))

    logger.info("built %d %s record(s), dropped %d row(s) without %s",
                len(records), target.name, dropped, key_field)
    if records:
        logger.debug("first record sample: %s", records[0])
    return records
