"""
Service container (composition root).

Builds the single price cache, broadcaster, sync service and scheduler shared
by the whole process. The FastAPI app keeps it on app.state.container.
"""
from dataclasses import dataclass
from typing import Callable, Optional
from fastapi import Request
from sqlalchemy.orm import Session
from agriconnect.core.database import SessionLocal
from agriconnect.services.prices.broadcast import PriceBroadcaster
from agriconnect.services.prices.fetcher import FAOPriceFetcher
from agriconnect.services.prices.price_cache import PriceCache
from agriconnect.services.prices.sync_service import MarketPriceSyncService
from agriconnect.services.scheduler.scheduler_service import PriceSyncScheduler


@dataclass
class ServiceContainer:
    cache: PriceCache
    broadcaster: PriceBroadcaster
    sync_service: MarketPriceSyncService
    scheduler: PriceSyncScheduler


def build_container(
    session_factory: Callable[[], Session] = SessionLocal,
    fetcher: Optional[FAOPriceFetcher] = None,
    cache: Optional[PriceCache] = None,
) -> ServiceContainer:
    """Wire up the price services."""
    cache = cache or PriceCache()
    broadcaster = PriceBroadcaster()
    sync_service = MarketPriceSyncService(
        cache=cache,
        session_factory=session_factory,
        fetcher=fetcher,
        broadcaster=broadcaster,
    )
    scheduler = PriceSyncScheduler(sync_service)
    return ServiceContainer(
        cache=cache,
        broadcaster=broadcaster,
        sync_service=sync_service,
        scheduler=scheduler,
    )


def get_container(request: Request) -> ServiceContainer:
    """Dependency for FastAPI to get the service container."""
    return request.app.state.container
