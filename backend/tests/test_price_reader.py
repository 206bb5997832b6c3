"""Tests for the cached latest-prices read path."""

from decimal import Decimal

import pytest

from agriconnect.services.prices import price_store
from agriconnect.services.prices.price_cache import PriceCache
from agriconnect.services.prices.price_reader import get_latest_prices


@pytest.fixture
def cache():
    return PriceCache(ttl_minutes=15)


@pytest.fixture
def maize_gaborone(reference_data, make_price):
    crop_id = reference_data["crops"]["Maize"]
    region_id = reference_data["regions"]["Gaborone"]
    make_price(crop_id, region_id, 4)
    return crop_id, region_id


def test_miss_then_hit(db, cache, maize_gaborone) -> None:
    first = get_latest_prices(db, cache, {"crop": "Maize", "region_id": None})
    second = get_latest_prices(db, cache, {"crop": "MAIZE"})

    assert first["cached"] is False
    assert "cached_at" not in first
    assert second["cached"] is True
    assert second["data"] == first["data"]


def read_latest(session_factory, cache, filters):
    session = session_factory()
    try:
        return get_latest_prices(session, cache, filters)
    finally:
        session.close()


def test_sync_during_load_does_not_cache_stale_rows(session_factory, cache, maize_gaborone, monkeypatch) -> None:
    crop_id, region_id = maize_gaborone
    real_list_prices = price_store.list_prices

    def list_then_sync(*args, **kwargs):
        rows = real_list_prices(*args, **kwargs)
        monkeypatch.setattr(price_store, "list_prices", real_list_prices)
        sync_session = session_factory()
        try:
            price_store.upsert_price(sync_session, crop_id, region_id, Decimal("9.00"))
        finally:
            sync_session.close()
        cache.invalidate_all()
        cache.set_last_sync_time()
        return rows

    monkeypatch.setattr(price_store, "list_prices", list_then_sync)

    racing = read_latest(session_factory, cache, {})
    after = read_latest(session_factory, cache, {})

    assert racing["data"][0]["price"] == 4.0
    assert racing["last_sync"] is None
    assert after["cached"] is False
    assert after["data"][0]["price"] == 9.0
    assert after["last_sync"] is not None
