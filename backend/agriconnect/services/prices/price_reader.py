"""
Cached read path for latest market prices.
"""
import logging
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from agriconnect.services.prices import price_store
from agriconnect.services.prices.price_cache import FILTER_KEYS, PriceCache

logger = logging.getLogger(__name__)


def get_latest_prices(db: Session, cache: PriceCache, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Latest prices for the given filters, served from cache when fresh.

    Args:
        db: Database session
        cache: Shared price cache
        filters: Optional crop, region (names) and crop_id, region_id

    Returns:
        {data, cached, cached_at (hits only), last_sync}
    """
    filters = {name: value for name, value in (filters or {}).items() if name in FILTER_KEYS and value is not None}

    hit = cache.get(filters)
    if hit is not None:
        return {
            "data": hit["data"],
            "cached": True,
            "cached_at": hit["cached_at"],
            "last_sync": hit["last_sync"],
        }

    # A sync finishing mid-load bumps the generation, so these rows are not cached
    last_sync = cache.get_last_sync_time()
    generation = cache.generation
    prices = price_store.list_prices(
        db,
        crop_id=filters.get("crop_id"),
        region_id=filters.get("region_id"),
        crop=filters.get("crop"),
        region=filters.get("region"),
    )
    data = [p.to_dict() for p in prices]
    stored = cache.set(filters, data, generation=generation)
    logger.debug(f"Price cache miss for {cache.make_key(filters)}, loaded {len(data)} rows (cached: {stored})")

    return {
        "data": data,
        "cached": False,
        "last_sync": last_sync,
    }
