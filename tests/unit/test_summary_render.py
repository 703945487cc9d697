from __future__ import annotations

from datetime import UTC, datetime, timedelta

from master_ingest.models.processing_result import ProcessingResult
from master_ingest.services.summary import render_summary_line


def _result(success: int, failed: int, rows: int, elapsed: float, rps: float) -> ProcessingResult:
    start = datetime(2025, 1, 1, tzinfo=UTC)
    return ProcessingResult(
        success_files=success,
        failed_files=failed,
        total_written_rows=rows,
        start_time=start,
        end_time=start + timedelta(seconds=elapsed),
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=rps,
    )


def test_render_summary_line_basic():
    line = render_summary_line(3, _result(2, 1, 420, 1.5, 280.0))
    assert line == "SUMMARY files=3/3 success=2 failed=1 rows=420 elapsed_sec=1.5 throughput_rps=280"


def test_render_summary_line_rounds_and_avoids_scientific_notation():
    line = render_summary_line(1, _result(1, 0, 1, 0.123456, 0.0012345))
    assert "elapsed_sec=0.123 " in line
    assert line.endswith("throughput_rps=0.001234") or line.endswith("throughput_rps=0.001235")
    assert "e-" not in line


def test_render_summary_line_zero():
    line = render_summary_line(0, _result(0, 0, 0, 0.0, 0.0))
    assert line == "SUMMARY files=0/0 success=0 failed=0 rows=0 elapsed_sec=0 throughput_rps=0"


def test_render_summary_line_processed_out_of_requested():
    line = render_summary_line(3, _result(1, 1, 10, 1.0, 10.0))
    assert line.startswith("SUMMARY files=2/3 success=1 failed=1 rows=10 ")
