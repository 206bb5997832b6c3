"""Tests for the price sync scheduler."""

import logging
import threading
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from agriconnect.services.prices.price_models import SyncStats
from agriconnect.services.scheduler import PriceSyncScheduler, SYNC_JOB_ID


def make_stats(**kwargs):
    return SyncStats(start_time=datetime.now(timezone.utc), **kwargs)


@pytest.fixture
def sync_service():
    service = Mock()
    service.sync_market_prices.return_value = make_stats(prices_updated=3)
    return service


@pytest.fixture
def scheduler(sync_service):
    scheduler = PriceSyncScheduler(
        sync_service,
        timezone="Africa/Gaborone",
        cron_hours="*/3",
        initial_delay_seconds=3600,
    )
    yield scheduler
    scheduler.stop()


def test_start_reports_next_run(scheduler) -> None:
    scheduler.start()

    status = scheduler.get_status()

    assert status["running"] is True
    assert status["next_run"] is not None
    assert "hour=*/3" in status["schedule"]
    assert scheduler._scheduler.get_job(SYNC_JOB_ID).max_instances == 1


def test_status_when_stopped(scheduler) -> None:
    status = scheduler.get_status()
    assert status["running"] is False
    assert status["next_run"] is None


def test_double_start_warns(scheduler, caplog) -> None:
    scheduler.start()
    first = scheduler._scheduler

    with caplog.at_level(logging.WARNING):
        scheduler.start()

    assert scheduler._scheduler is first
    assert "Scheduler already running" in caplog.text


def test_stop_is_idempotent(scheduler) -> None:
    scheduler.stop()
    scheduler.start()
    scheduler.stop()
    scheduler.stop()

    assert scheduler.running is False
    assert scheduler.get_status()["next_run"] is None


def test_can_restart_after_stop(scheduler) -> None:
    scheduler.start()
    scheduler.stop()
    scheduler.start()
    assert scheduler.running is True


def test_trigger_sync_runs_immediately(scheduler, sync_service) -> None:
    stats = scheduler.trigger_sync()

    assert stats.prices_updated == 3
    sync_service.sync_market_prices.assert_called_once()


def test_initial_sync_fires_after_delay(sync_service) -> None:
    fired = threading.Event()
    sync_service.sync_market_prices.side_effect = lambda: fired.set() or make_stats()
    scheduler = PriceSyncScheduler(sync_service, initial_delay_seconds=0.2)
    try:
        scheduler.start()
        assert fired.wait(timeout=5)
    finally:
        scheduler.stop()


def test_guarded_run_swallows_errors(scheduler, sync_service, caplog) -> None:
    sync_service.sync_market_prices.side_effect = RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        scheduler._run_scheduled_sync()

    assert "Scheduled sync failed: boom" in caplog.text


def test_guarded_run_logs_degraded_runs(scheduler, sync_service, caplog) -> None:
    sync_service.sync_market_prices.return_value = make_stats(errors=[{"fatal": "db"}])

    with caplog.at_level(logging.WARNING):
        scheduler._run_initial_sync()

    assert "Initial sync finished with 1 errors" in caplog.text
