from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime
from typing import Any

import pandas as pd

"""Tabular decoder: uploaded bytes -> RawGrid (list of rows of string cells).

Text uploads are decoded as UTF-8 (leading BOM stripped) and split with the
delimiter guessed from the first line. XLSX uploads (zip signature) are read
through pandas and flattened to the same grid of strings.

No row is assumed to be the header here and no cell is type-coerced; that is
left to the header locator and the normalizers.
"""

__all__ = [
    "RawGrid",
    "decode",
    "detect_delimiter",
]

logger = logging.getLogger(__name__)

RawGrid = list[list[str]]

BOM = "\ufeff"
XLSX_SIGNATURE = b"PK\x03\x04"
# 優先順: カンマ > セミコロン > タブ
DELIMITER_CANDIDATES = (",", ";", "\t")
DEFAULT_DELIMITER = ","


def detect_delimiter(first_line: str) -> str:
    """Pick the delimiter from the first line only.

    Best-effort: a quoted comma on the first line of a semicolon file will
    mis-detect as comma.
    """
    for candidate in DELIMITER_CANDIDATES:
        if candidate in first_line:
            return candidate
    return DEFAULT_DELIMITER


def decode(data: bytes) -> RawGrid:
    """Decode an uploaded buffer into a RawGrid.

    Raises UnicodeDecodeError for text that is not UTF-8, and whatever pandas
    raises for a corrupt workbook; both are upstream concerns reported by the
    pipeline as decode failures.
    """
    if not data:
        return []
    if data.startswith(XLSX_SIGNATURE):
        return _decode_workbook(data)

    text = data.decode("utf-8")
    if text.startswith(BOM):
        text = text[1:]
    first_line = text.split("\n", 1)[0]
    delimiter = detect_delimiter(first_line)
    logger.debug("detected delimiter %r", delimiter)
    return [list(row) for row in csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)]


def _decode_workbook(data: bytes) -> RawGrid:
    # 先頭シートのみ対象 (ヘッダ推定は後段)
    df = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, keep_default_na=False)
    logger.debug("decoded workbook shape=%s", df.shape)
    return [[_cell_text(v) for v in row] for row in df.itertuples(index=False, name=None)]


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        if pd.isna(value):
            return ""
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)
