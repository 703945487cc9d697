from __future__ import annotations

import re
from pathlib import Path

from master_ingest.cli import main as cli_main

SUMMARY_RE = re.compile(
    r"^SUMMARY files=(\d+)/(\d+) success=(\d+) failed=(\d+) rows=(\d+) "
    r"elapsed_sec=[0-9.]+ throughput_rps=[0-9.]+$"
)


def test_summary_is_last_line(temp_workdir: Path, write_config: Path, store_csv_bytes: bytes,
                              monkeypatch, clean_logging, capsys):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    (temp_workdir / "data" / "EP.csv").write_bytes(store_csv_bytes)
    (temp_workdir / "data" / "CP.csv").write_bytes(b"only,noise\n")

    cli_main(["stores", "data/EP.csv", "data/CP.csv"])
    lines = capsys.readouterr().out.strip().splitlines()

    m = SUMMARY_RE.match(lines[-1])
    assert m is not None, lines[-1]
    total, total2, success, failed, rows = map(int, m.groups())
    assert total == total2 == success + failed == 2
    assert (success, failed, rows) == (1, 1, 2)
    # every line carries a level label
    assert all(re.match(r"^(DEBUG|INFO|WARN|ERROR|SUMMARY) ", line) for line in lines)
