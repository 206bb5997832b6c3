"""Tests for the market sync event log."""

import json
from decimal import Decimal

import pytest

from agriconnect.core import sync_log


@pytest.fixture
def log_file(tmp_path):
    handler = sync_log.configure_sync_logging(str(tmp_path))
    yield tmp_path / sync_log.SYNC_LOG_FILENAME
    sync_log.sync_logger.removeHandler(handler)
    handler.close()


def read_entries(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_events_are_written_as_json_lines(log_file) -> None:
    sync_log.log_sync_start()
    sync_log.log_price_update("Maize", "Gaborone", Decimal("4.00"), Decimal("4.17"), Decimal("4.25"))
    sync_log.log_api_fetch("FAO FPMA API", False, attempt=2, error="timeout")

    entries = read_entries(log_file)

    assert entries[0]["message"] == "=== Market Price Sync Started ==="
    assert entries[0]["level"] == "info"
    assert entries[1]["data"]["change_percent"] == "+4.25%"
    assert entries[1]["data"]["old_price"] == "4.00"
    assert entries[2]["level"] == "warning"
    assert entries[2]["data"] == {"success": False, "attempt": 2, "error": "timeout"}


def test_error_event(log_file) -> None:
    sync_log.log_sync_error(RuntimeError("db down"))

    entry = read_entries(log_file)[0]

    assert entry["level"] == "error"
    assert entry["data"]["message"] == "db down"


def test_configure_is_idempotent(log_file, tmp_path) -> None:
    again = sync_log.configure_sync_logging(str(tmp_path))
    handlers = [h for h in sync_log.sync_logger.handlers if getattr(h, "baseFilename", None) == again.baseFilename]
    assert len(handlers) == 1


@pytest.mark.parametrize("change,places,expected", [
    (Decimal("4.254"), 2, "+4.25%"),
    (Decimal("-10"), 1, "-10.0%"),
    (Decimal("0"), 2, "0.00%"),
])
def test_format_change(change, places, expected) -> None:
    assert sync_log.format_change(change, places) == expected
