from __future__ import annotations

import re
from collections.abc import Collection
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

"""Field normalizers: raw cell string -> canonical value.

All functions are pure and never raise on bad cell content. A bad price becomes
zero and a bad date becomes None, so one broken cell cannot abort a batch of
thousands of rows.
"""

__all__ = [
    "NULL_TOKENS",
    "DATE_FORMATS",
    "is_null_token",
    "trim_or_null",
    "parse_price",
    "parse_date",
]

NULL_TOKENS = frozenset({"#N/A"})

# strptime accepts unpadded day/month, so %m/%d/%Y covers both MM/DD/YYYY and M/D/YYYY
DATE_FORMATS = (
    "%m/%d/%Y",
    "%d-%b-%Y",
    "%Y-%m-%d",
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
ZERO = Decimal(0)


def is_null_token(raw: object, null_tokens: Collection[str] = NULL_TOKENS) -> bool:
    """True for None, blank strings and placeholder tokens (case-insensitive)."""
    if raw is None:
        return True
    stripped = str(raw).strip()
    if stripped == "":
        return True
    return stripped.upper() in {t.upper() for t in null_tokens}


def trim_or_null(raw: object, null_tokens: Collection[str] = NULL_TOKENS) -> str | None:
    if is_null_token(raw, null_tokens):
        return None
    return str(raw).strip()


def parse_price(raw: object, null_tokens: Collection[str] = NULL_TOKENS) -> Decimal:
    """'$1,200.50' -> Decimal('1200.50'); empty, placeholder or garbage -> 0."""
    if is_null_token(raw, null_tokens):
        return ZERO
    cleaned = _NON_NUMERIC.sub("", str(raw))
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return ZERO
    if not value.is_finite():
        return ZERO
    return value


def parse_date(raw: object, null_tokens: Collection[str] = NULL_TOKENS) -> date | None:
    """Strict parse against DATE_FORMATS in order; first match wins."""
    if is_null_token(raw, null_tokens):
        return None
    text = str(raw).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
