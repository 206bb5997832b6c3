"""
Market price sync service.

One sync run:
- Loads crop/region name indices
- Fetches external prices, or generates fallback fluctuations when the
  external source is unavailable
- Upserts every row independently (a failing row is recorded, not fatal)
- Sends farmer alerts for large price swings
- Clears the price cache and records the sync time
- Pushes the fresh price list to live listeners (best effort)
"""
import logging
import random
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from sqlalchemy.orm import Session
from agriconnect.core.config import DEFAULT_REGION, PRICE_FLUCTUATION_PERCENT
from agriconnect.core.database import SessionLocal
from agriconnect.core.sync_log import (
    log_sync_start,
    log_sync_complete,
    log_sync_error,
    log_price_update,
)
from agriconnect.services.prices import price_store
from agriconnect.services.prices.alerts import PriceAlertDispatcher
from agriconnect.services.prices.broadcast import PriceBroadcaster
from agriconnect.services.prices.fetcher import FAOPriceFetcher
from agriconnect.services.prices.fluctuation import generate_fluctuated_prices
from agriconnect.services.prices.mapper import map_external_to_internal
from agriconnect.services.prices.price_cache import PriceCache
from agriconnect.services.prices.price_models import (
    PriceUpdate,
    SyncStats,
    SOURCE_EXTERNAL_API,
    SOURCE_MARKET_FLUCTUATION,
    compute_change_percent,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketPriceSyncService:
    """Orchestrates market price sync runs."""

    def __init__(
        self,
        cache: PriceCache,
        session_factory: Callable[[], Session] = SessionLocal,
        fetcher: Optional[FAOPriceFetcher] = None,
        alert_dispatcher: Optional[PriceAlertDispatcher] = None,
        broadcaster: Optional[PriceBroadcaster] = None,
        rng: Optional[random.Random] = None,
        default_region: str = DEFAULT_REGION,
        fluctuation_percent: float = PRICE_FLUCTUATION_PERCENT,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.fetcher = fetcher or FAOPriceFetcher()
        self.alert_dispatcher = alert_dispatcher or PriceAlertDispatcher()
        self.broadcaster = broadcaster
        self.rng = rng or random.Random()
        self.default_region = default_region
        self.fluctuation_percent = fluctuation_percent
        self._run_lock = threading.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._run_lock.locked()

    def sync_market_prices(self) -> SyncStats:
        """
        Run one sync. Never raises; inspect stats.errors for degraded runs.

        A call made while another run is in progress is skipped and returns
        stats with skipped=True.
        """
        stats = SyncStats(start_time=_utcnow())

        if not self._run_lock.acquire(blocking=False):
            logger.warning("Market price sync already in progress, skipping this run")
            stats.skipped = True
            stats.end_time = _utcnow()
            return stats

        try:
            return self._run(stats)
        finally:
            self._run_lock.release()

    def _run(self, stats: SyncStats) -> SyncStats:
        log_sync_start()
        db = self.session_factory()
        try:
            crop_index, region_index = price_store.load_name_indices(db)

            external_rows = self.fetcher.fetch_external_prices()
            if external_rows:
                updates = map_external_to_internal(external_rows, crop_index, region_index, self.default_region)
                stats.source = SOURCE_EXTERNAL_API
                logger.info(f"Using external price data ({len(updates)} of {len(external_rows)} rows mapped)")
            else:
                logger.info("External prices unavailable, applying market fluctuations to existing prices")
                updates = generate_fluctuated_prices(db, self.rng, self.fluctuation_percent)
                stats.source = SOURCE_MARKET_FLUCTUATION

            for update in updates:
                self._apply_update(db, update, stats)

            self.cache.invalidate_all()
            self.cache.set_last_sync_time()

            stats.end_time = _utcnow()
            log_sync_complete(stats.to_dict())

            self._broadcast(db, stats)
            return stats

        except Exception as e:
            log_sync_error(e)
            try:
                db.rollback()
            except Exception:
                pass  # Connection may already be gone
            stats.errors.append({"fatal": str(e)})
            stats.end_time = _utcnow()
            return stats
        finally:
            db.close()

    def _apply_update(self, db: Session, update: PriceUpdate, stats: SyncStats):
        """Write one price row; failures are recorded in stats and rolled back."""
        try:
            old_price = update.old_price
            crop_name = update.crop_name
            region_name = update.region_name

            if old_price is None:
                current = price_store.get_price(db, update.crop_id, update.region_id)
                if current:
                    old_price = current.price
                    crop_name = current.crop_name
                    region_name = current.region_name

            stored = price_store.upsert_price(
                db,
                crop_id=update.crop_id,
                region_id=update.region_id,
                price=update.price,
                unit=update.unit or "kg",
                updated_by=None,  # System update
            )
            stats.prices_updated += 1
            if old_price is not None and stored.price == old_price:
                stats.prices_unchanged += 1

            if not crop_name or not region_name:
                crop_name = price_store.get_crop_name(db, update.crop_id) or "Unknown"
                region_name = price_store.get_region_name(db, update.region_id) or "Unknown"

            change_percent = compute_change_percent(old_price, stored.price)
            if change_percent is not None:
                log_price_update(crop_name, region_name, old_price, stored.price, change_percent)
                stats.alerts_sent += self.alert_dispatcher.check_price_alerts(
                    db,
                    update.crop_id,
                    update.region_id,
                    old_price,
                    stored.price,
                    crop_name,
                    region_name,
                    stored.unit,
                )

        except Exception as e:
            try:
                db.rollback()
            except Exception:
                pass
            stats.errors.append({
                "crop_id": update.crop_id,
                "region_id": update.region_id,
                "error": str(e),
            })
            logger.error(
                f"Failed to update price for crop {update.crop_id} in region {update.region_id}: {e}",
                exc_info=True,
            )

    def _broadcast(self, db: Session, stats: SyncStats):
        """Push the fresh price list to live listeners; failures are only logged."""
        if self.broadcaster is None:
            return
        try:
            prices = [p.to_broadcast_dict() for p in price_store.list_prices(db)]
            self.broadcaster.broadcast({
                "prices": prices,
                "sync_stats": stats.to_dict(),
            })
        except Exception as e:
            logger.warning(f"Failed to broadcast price update: {e}")

    def get_sync_status(self) -> Dict[str, Any]:
        return {
            "last_sync": self.cache.get_last_sync_time(),
            "cache_stats": self.cache.get_stats(),
            "syncing": self.is_syncing,
        }
