"""
Map external (FAO) commodity and market names onto our crops and regions.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional
from agriconnect.core.config import DEFAULT_REGION
from agriconnect.services.prices.price_models import PriceUpdate, round_price

logger = logging.getLogger(__name__)

# FAO commodity label fragment -> our crop name (first match wins)
COMMODITY_MAP = [
    ("maize", "Maize"),
    ("sorghum", "Sorghum"),
    ("millet", "Millet"),
    ("beans", "Beans"),
    ("cowpeas", "Cowpeas"),
    ("groundnuts", "Groundnuts"),
    ("tomatoes", "Tomatoes"),
    ("onions", "Onions"),
    ("cabbage", "Cabbage"),
    ("potatoes", "Potatoes"),
]

# FAO market label fragment -> our region name
REGION_MAP = [
    ("gaborone", "Gaborone"),
    ("francistown", "Francistown"),
    ("maun", "Maun"),
    ("national", "Central"),
]


def _match(label: str, vocabulary) -> Optional[str]:
    label = label.lower()
    for fragment, name in vocabulary:
        if fragment in label:
            return name
    return None


def parse_price(value: Any) -> Optional[Decimal]:
    """Parse an external price into a positive 2-place Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return round_price(price)


def map_external_to_internal(
    rows: Iterable[Dict[str, Any]],
    crop_index: Dict[str, int],
    region_index: Dict[str, int],
    default_region: str = DEFAULT_REGION,
) -> List[PriceUpdate]:
    """
    Normalize external rows to PriceUpdate objects.

    Rows with an unknown commodity or no usable price are dropped. Unknown
    markets fall back to the default (capital) region.

    Args:
        rows: External rows with commodity, market, price, unit keys
        crop_index: Lower-cased crop name -> crop id
        region_index: Lower-cased region name -> region id
        default_region: Region used when the market is not recognised
    """
    default_region_id = region_index.get(default_region.lower())
    normalized = []
    dropped = 0

    for item in rows:
        crop_name = _match(str(item.get("commodity") or ""), COMMODITY_MAP)
        crop_id = crop_index.get(crop_name.lower()) if crop_name else None
        if not crop_id:
            dropped += 1
            continue

        region_name = _match(str(item.get("market") or ""), REGION_MAP)
        region_id = region_index.get(region_name.lower()) if region_name else None
        if not region_id:
            region_id = default_region_id

        price = parse_price(item.get("price"))
        if not region_id or price is None:
            dropped += 1
            continue

        normalized.append(PriceUpdate(
            crop_id=crop_id,
            region_id=region_id,
            price=price,
            unit=item.get("unit") or "kg",
        ))

    if dropped:
        logger.debug(f"Dropped {dropped} unmappable external price rows")
    return normalized
