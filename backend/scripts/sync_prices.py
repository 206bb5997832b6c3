"""
Run one market price sync from the command line (e.g. from system cron).
"""
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from agriconnect.core.sync_log import configure_sync_logging
from agriconnect.services.prices import MarketPriceSyncService, PriceCache

logging.basicConfig(level=logging.INFO)


def main() -> int:
    configure_sync_logging()
    # Stand-alone process: the cache is private, so invalidation here does not
    # reach a running API server; its entries expire by TTL.
    service = MarketPriceSyncService(cache=PriceCache())
    stats = service.sync_market_prices()
    print(json.dumps(stats.to_dict(), indent=2))
    return 1 if any("fatal" in error for error in stats.errors) else 0


if __name__ == "__main__":
    sys.exit(main())
