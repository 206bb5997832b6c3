"""
Fallback price generation when the external source is unavailable.

Applies a small random move to every stored price so scheduled syncs keep
the market moving without connectivity.
"""
import random
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from agriconnect.core.config import PRICE_FLUCTUATION_PERCENT
from agriconnect.services.prices import price_store
from agriconnect.services.prices.price_models import PriceUpdate, round_price


def perturb_price(price, rng: random.Random, max_percent: float = PRICE_FLUCTUATION_PERCENT) -> Decimal:
    """Move price by a uniform random amount within +/- max_percent, rounded to cents."""
    fluctuation = Decimal(str(rng.uniform(-max_percent, max_percent))) / 100
    return round_price(Decimal(str(price)) * (1 + fluctuation))


def generate_fluctuated_prices(
    db: Session,
    rng: Optional[random.Random] = None,
    max_percent: float = PRICE_FLUCTUATION_PERCENT,
) -> List[PriceUpdate]:
    """Build one PriceUpdate per stored price, carrying names and the old price."""
    rng = rng or random.Random()
    updates = []
    for stored in price_store.list_prices(db):
        updates.append(PriceUpdate(
            crop_id=stored.crop_id,
            region_id=stored.region_id,
            price=perturb_price(stored.price, rng, max_percent),
            unit=stored.unit,
            crop_name=stored.crop_name,
            region_name=stored.region_name,
            old_price=stored.price,
        ))
    return updates
