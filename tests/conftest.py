# Shared pytest fixtures
from __future__ import annotations

import copy
import re
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

from master_ingest.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
targets:
  stores:
    table: master_stores
  pricelist:
    table: price_lists
header_scan_rows: 30
null_tokens: ["#N/A", "n/a"]
page_size: 500
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


# --- in-memory database ------------------------------------------------------
#
# FakeCursor models what the writer relies on: BEGIN snapshots the committed
# tables, execute_values stages upserts into the snapshot, COMMIT publishes it
# and ROLLBACK discards it. Rows can be rejected to simulate a constraint
# violation part-way through a batch.

_INSERT_RE = re.compile(r"INSERT INTO (\S+) \((.*?)\) VALUES %s")
_CONFLICT_RE = re.compile(r'ON CONFLICT \("(\w+)"\)')
_SET_RE = re.compile(r'"(\w+)" = EXCLUDED')


class FakeIntegrityError(Exception):
    pass


class FakeDatabase:
    def __init__(self) -> None:
        self.tables: dict[str, dict[Any, dict[str, Any]]] = {}
        self.reject: Callable[[dict[str, Any]], bool] | None = None

    def rows(self, table: str) -> dict[Any, dict[str, Any]]:
        return self.tables.get(table, {})


class FakeCursor:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.statements: list[str] = []
        self._working: dict[str, dict[Any, dict[str, Any]]] | None = None

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append(sql)
        if sql == "BEGIN":
            self._working = copy.deepcopy(self.db.tables)
        elif sql == "COMMIT":
            assert self._working is not None
            self.db.tables = self._working
            self._working = None
        elif sql == "ROLLBACK":
            self._working = None

    def upsert(self, sql: str, rows: list[tuple[Any, ...]]) -> None:
        assert self._working is not None, "upsert outside a transaction"
        self.statements.append(sql)
        m = _INSERT_RE.search(sql)
        assert m is not None
        table = m.group(1)
        columns = [c.strip().strip('"') for c in m.group(2).split(",")]
        key = _CONFLICT_RE.search(sql).group(1)
        updatable = _SET_RE.findall(sql)
        target = self._working.setdefault(table, {})
        for row in rows:
            rec = dict(zip(columns, row))
            if self.db.reject is not None and self.db.reject(rec):
                raise FakeIntegrityError(f"constraint violated for {key}={rec[key]}")
            existing = target.get(rec[key])
            if existing is None:
                target[rec[key]] = rec
            else:
                for f in updatable:
                    existing[f] = rec[f]


@pytest.fixture()
def patch_execute_values(monkeypatch):
    import master_ingest.db.upsert as up

    calls: list[dict[str, Any]] = []

    def fake_execute_values(cursor, sql, rows, page_size=1000, template=None):
        calls.append({"sql": sql, "rows": list(rows), "page_size": page_size})
        if isinstance(cursor, FakeCursor):
            cursor.upsert(sql, list(rows))

    monkeypatch.setattr(up, "execute_values", fake_execute_values)
    return calls


@pytest.fixture()
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def fake_cursor(fake_db: FakeDatabase, patch_execute_values) -> FakeCursor:
    return FakeCursor(fake_db)


# --- sample uploads ----------------------------------------------------------

STORE_CSV = (
    "Master Store Directory,,,,,,,\n"
    ",,,,,,,\n"
    "Oracle Ccid,Region,City,Mall,Brand,Store Name,Size (sqm),Opening Date\n"
    "1001,Central,Riyadh,Granada Center,Starbucks,SB Granada,\"1,250.50\",01/31/2025\n"
    "1002,Western,Jeddah,Red Sea Mall,H&M,HM Red Sea,#N/A,2024-11-05\n"
    "#N/A,Eastern,Dammam,,,,,\n"
    ",,,,,,,\n"
)

PRICELIST_CSV = (
    "Rate list Version 3;;;;;;\n"
    "CODE;TYPE;DECRIPTION;UNIT;\"Material \nPrice\";Labor Price;Total\n"
    "EL-001;Electrical;Replace socket;EA;$12.50;$7.50;$20.00\n"
    "EL-002;Electrical;Replace switch;EA;$10.00;$5.00;\n"
    ";;Section subtotal;;;;\n"
)


@pytest.fixture()
def store_csv_bytes() -> bytes:
    return STORE_CSV.encode("utf-8")


@pytest.fixture()
def pricelist_csv_bytes() -> bytes:
    return PRICELIST_CSV.encode("utf-8")
