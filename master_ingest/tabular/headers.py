from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from ..models.targets import AnchorRule

"""Header locator and header resolver.

locate_header: find the row that most plausibly holds the column headers, by
looking for anchor aliases in the first N rows (title rows, blank rows and
report banners commonly precede the real header).

resolve_headers: map each canonical field to a column index. Per field the
ordered alias list is tried twice: first exact (after cleaning), then a
substring fallback that only considers aliases longer than two characters.
Exact hits for any alias always win over substring hits, so a column that
merely contains an alias cannot shadow a later exact match.
"""

__all__ = [
    "HeaderMap",
    "HeaderError",
    "HeaderNotFoundError",
    "MissingNaturalKeyError",
    "clean_header",
    "match_header",
    "locate_header",
    "resolve_headers",
]

logger = logging.getLogger(__name__)

HeaderMap = dict[str, int | None]

DEFAULT_SCAN_ROWS = 30
FUZZY_MIN_ALIAS_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class HeaderError(Exception):
    """Structural problem with the uploaded sheet; nothing has been built."""


class HeaderNotFoundError(HeaderError):
    """Raised when no row within the scan window carries the anchor columns."""

    def __init__(self, anchors: str, scanned_rows: int) -> None:
        self.anchors = anchors
        self.scanned_rows = scanned_rows
        super().__init__(
            f"could not find a header row with {anchors} within the first {scanned_rows} rows"
        )


class MissingNaturalKeyError(HeaderError):
    """Raised when the natural-key column cannot be resolved from the header row."""

    def __init__(self, field: str, header_row: Sequence[str]) -> None:
        self.field = field
        self.header_row = list(header_row)
        super().__init__(
            f"header row has no column for required field '{field}' (headers: {self.header_row})"
        )


def clean_header(raw: object) -> str:
    """Normalize a header or alias for comparison.

    'Material \\nPrice', 'material-price' and ' MATERIAL_PRICE ' all become
    'material_price'.
    """
    if raw is None:
        return ""
    text = str(raw)
    if text.startswith("\ufeff"):
        text = text[1:]
    return _NON_ALNUM.sub("_", text.lower()).strip("_")


def match_header(cleaned_headers: Sequence[str], aliases: Sequence[str]) -> int | None:
    """Column index for the first alias that matches, or None.

    `cleaned_headers` must already have gone through clean_header.
    """
    cleaned_aliases = [clean_header(a) for a in aliases]
    # 1. exact
    for alias in cleaned_aliases:
        if alias and alias in cleaned_headers:
            return cleaned_headers.index(alias)
    # 2. substring fallback
    for alias in cleaned_aliases:
        if len(alias) < FUZZY_MIN_ALIAS_LENGTH:
            continue
        for idx, header in enumerate(cleaned_headers):
            if header and (alias in header or header in alias):
                return idx
    return None


def _row_satisfies(rule: AnchorRule, cleaned_cells: set[str], width: int) -> bool:
    if width <= rule.wider_than:
        return False
    for _, aliases in rule.signals:
        if not any(clean_header(a) in cleaned_cells for a in aliases):
            return False
    return True


def locate_header(
    grid: Sequence[Sequence[str]],
    anchor_rules: Sequence[AnchorRule],
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> int:
    """Index of the first row satisfying any anchor rule.

    Raises:
        HeaderNotFoundError: no qualifying row in the first `scan_rows` rows
    """
    for index, row in enumerate(grid[:scan_rows]):
        cleaned = {clean_header(cell) for cell in row}
        if any(_row_satisfies(rule, cleaned, len(row)) for rule in anchor_rules):
            logger.info("header row found at index %d: %s", index, list(row))
            return index
    anchors = " or ".join(rule.describe() for rule in anchor_rules)
    logger.debug("header row not found; first rows: %s", [list(r) for r in grid[:3]])
    raise HeaderNotFoundError(anchors, min(len(grid), scan_rows))


def resolve_headers(
    header_row: Sequence[str],
    alias_table: Mapping[str, Sequence[str]],
    natural_key: str | None = None,
) -> HeaderMap:
    """Map every canonical field of `alias_table` to a column index (or None).

    Raises:
        MissingNaturalKeyError: `natural_key` given and left unresolved
    """
    cleaned = [clean_header(h) for h in header_row]
    header_map: HeaderMap = {
        field: match_header(cleaned, aliases) for field, aliases in alias_table.items()
    }
    if natural_key is not None and header_map.get(natural_key) is None:
        raise MissingNaturalKeyError(natural_key, header_row)
    unresolved = sorted(f for f, idx in header_map.items() if idx is None)
    if unresolved:
        logger.debug("unresolved fields (defaults apply): %s", unresolved)
    return header_map
