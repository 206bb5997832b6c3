"""Unit tests for the in-memory price cache."""

from datetime import datetime, timedelta, timezone

import pytest

from agriconnect.services.prices.price_cache import PriceCache


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache(clock):
    return PriceCache(ttl_minutes=15, clock=clock)


ROWS = [{"crop_name": "Maize", "region_name": "Gaborone", "price": 4.5}]


class TestExpiry:
    """TTL handling."""

    def test_hit_within_ttl(self, cache, clock) -> None:
        cache.set({"crop": "Maize"}, ROWS)
        clock.advance(minutes=15)

        hit = cache.get({"crop": "Maize"})

        assert hit is not None
        assert hit["data"] == ROWS
        assert hit["cached_at"] == datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_stale_entry_is_a_miss_and_evicted(self, cache, clock) -> None:
        cache.set({"crop": "Maize"}, ROWS)
        cache.set({}, ROWS)
        assert cache.get_stats()["entries"] == 2

        clock.advance(minutes=15, milliseconds=1)

        assert cache.get({"crop": "Maize"}) is None
        assert cache.get_stats()["entries"] == 1

    def test_set_overwrites_and_refreshes_timestamp(self, cache, clock) -> None:
        cache.set({}, ROWS)
        clock.advance(minutes=10)
        cache.set({}, [])
        clock.advance(minutes=10)

        hit = cache.get({})

        assert hit is not None
        assert hit["data"] == []


class TestKeys:
    """Cache key canonicalization."""

    def test_distinct_filter_sets_do_not_collide(self) -> None:
        keys = {
            PriceCache.make_key({}),
            PriceCache.make_key({"crop": "Maize"}),
            PriceCache.make_key({"crop_id": 3}),
            PriceCache.make_key({"region": "Gaborone"}),
            PriceCache.make_key({"crop": "Maize", "region": "Gaborone"}),
        }
        assert len(keys) == 5

    def test_empty_filter_differs_from_absent_filter(self) -> None:
        assert PriceCache.make_key({"crop": ""}) != PriceCache.make_key({})
        assert PriceCache.make_key({"crop": None}) == PriceCache.make_key({})
        assert PriceCache.make_key(None) == PriceCache.make_key({})

    def test_name_and_id_filters_do_not_collide(self) -> None:
        assert PriceCache.make_key({"crop": "3"}) != PriceCache.make_key({"crop_id": 3})

    def test_key_is_stable(self) -> None:
        assert PriceCache.make_key({"region_id": 2, "crop_id": 1}) == PriceCache.make_key({"crop_id": "1", "region_id": "2"})
        assert PriceCache.make_key({"crop": "MAIZE"}) == PriceCache.make_key({"crop": "maize"})

    def test_separator_in_value_cannot_forge_key(self) -> None:
        forged = PriceCache.make_key({"crop": 'Maize"|region="Gaborone'})
        assert forged != PriceCache.make_key({"crop": "Maize", "region": "Gaborone"})

    def test_region_filter_round_trip(self, cache) -> None:
        cache.set({"region": "Gaborone"}, ROWS)

        assert cache.get({"region": "Gaborone"})["data"] == ROWS
        assert cache.get({}) is None
        assert cache.get({"crop": "Maize"}) is None


class TestInvalidationAndStats:
    """Invalidation and last-sync tracking."""

    def test_invalidate_all(self, cache) -> None:
        cache.set({}, ROWS)
        cache.set({"crop": "Maize"}, ROWS)

        cache.invalidate_all()

        assert cache.get_stats()["entries"] == 0
        assert cache.get({}) is None

    def test_invalidate_single_key(self, cache) -> None:
        cache.set({}, ROWS)
        cache.set({"crop": "Maize"}, ROWS)

        cache.invalidate({"crop": "maize"})

        assert cache.get({"crop": "Maize"}) is None
        assert cache.get({}) is not None

    def test_last_sync_is_independent_of_entries(self, cache, clock) -> None:
        assert cache.get_last_sync_time() is None
        cache.set({}, ROWS)

        cache.set_last_sync_time()
        cache.invalidate_all()

        assert cache.get_last_sync_time() == clock.now
        cache.set({}, ROWS)
        assert cache.get({})["last_sync"] == clock.now

    def test_explicit_last_sync_time(self, cache) -> None:
        when = datetime(2026, 1, 1, tzinfo=timezone.utc)
        cache.set_last_sync_time(when)
        assert cache.get_last_sync_time() == when

    def test_stats(self, cache) -> None:
        cache.set({}, ROWS)

        stats = cache.get_stats()

        assert stats == {"entries": 1, "last_sync": None, "ttl_minutes": 15}


class TestGeneration:
    """Writes that started before an invalidation are discarded."""

    def test_invalidation_bumps_generation(self, cache) -> None:
        start = cache.generation
        cache.invalidate_all()
        cache.invalidate({"crop": "Maize"})
        assert cache.generation == start + 2

    def test_set_with_current_generation_stores(self, cache) -> None:
        assert cache.set({}, ROWS, generation=cache.generation) is True
        assert cache.get({})["data"] == ROWS

    def test_set_with_outdated_generation_is_dropped(self, cache) -> None:
        generation = cache.generation
        cache.invalidate_all()

        assert cache.set({}, ROWS, generation=generation) is False
        assert cache.get({}) is None
        assert cache.get_stats()["entries"] == 0
