from __future__ import annotations

from pathlib import Path

import pytest

from master_ingest.cli import main as cli_main
from master_ingest.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL

"""Exit code contract: 0 all files imported, 2 some file failed, 1 fatal."""


@pytest.fixture(autouse=True)
def _dry_run_env(monkeypatch, clean_logging):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # config/import.yml 無し → exit 1
    code = cli_main(["stores", "anything.csv"])
    assert code == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_invalid_config(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("page_size: 0\n", encoding="utf-8")
    code = cli_main(["stores", "anything.csv"])
    assert code == EXIT_FATAL
    assert "config validation failed" in capsys.readouterr().out


def test_exit_code_all_success(temp_workdir: Path, write_config: Path, store_csv_bytes: bytes):
    for name in ("EP.csv", "CP.csv", "WP.csv"):
        (temp_workdir / "data" / name).write_bytes(store_csv_bytes)
    code = cli_main(["stores", "data/EP.csv", "data/CP.csv", "data/WP.csv"])
    assert code == EXIT_SUCCESS_ALL


def test_exit_code_partial_failure(temp_workdir: Path, write_config: Path, store_csv_bytes: bytes):
    (temp_workdir / "data" / "EP.csv").write_bytes(store_csv_bytes)
    (temp_workdir / "data" / "CP.csv").write_bytes(b"")
    code = cli_main(["stores", "data/EP.csv", "data/CP.csv"])
    assert code == EXIT_PARTIAL_FAILURE


def test_exit_code_all_failed_is_partial(temp_workdir: Path, write_config: Path):
    (temp_workdir / "data" / "CP.csv").write_bytes(b"")
    assert cli_main(["stores", "data/CP.csv"]) == EXIT_PARTIAL_FAILURE
