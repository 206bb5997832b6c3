"""
Market price services: external sync, fallback fluctuation, alerts and caching.
"""
from agriconnect.services.prices.price_models import (
    PriceUpdate,
    StoredPrice,
    SyncStats,
    SOURCE_EXTERNAL_API,
    SOURCE_MARKET_FLUCTUATION,
    round_price,
    compute_change_percent,
)
from agriconnect.services.prices.price_cache import PriceCache
from agriconnect.services.prices.fetcher import FAOPriceFetcher
from agriconnect.services.prices.mapper import map_external_to_internal
from agriconnect.services.prices.fluctuation import generate_fluctuated_prices, perturb_price
from agriconnect.services.prices.alerts import PriceAlertDispatcher
from agriconnect.services.prices.broadcast import PriceBroadcaster
from agriconnect.services.prices.sync_service import MarketPriceSyncService
from agriconnect.services.prices.price_reader import get_latest_prices

__all__ = [
    "PriceUpdate",
    "StoredPrice",
    "SyncStats",
    "SOURCE_EXTERNAL_API",
    "SOURCE_MARKET_FLUCTUATION",
    "round_price",
    "compute_change_percent",
    "PriceCache",
    "FAOPriceFetcher",
    "map_external_to_internal",
    "generate_fluctuated_prices",
    "perturb_price",
    "PriceAlertDispatcher",
    "PriceBroadcaster",
    "MarketPriceSyncService",
    "get_latest_prices",
]
