"""
Price service data classes.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Dict, Any

SOURCE_EXTERNAL_API = "external-api"
SOURCE_MARKET_FLUCTUATION = "market-fluctuation"

CENTS = Decimal("0.01")


def round_price(value) -> Decimal:
    """Convert to Decimal rounded to 2 places (half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_change_percent(old_price, new_price) -> Optional[Decimal]:
    """Percentage change from old to new, or None when old is missing or not positive."""
    if old_price is None:
        return None
    old_price = Decimal(str(old_price))
    if old_price <= 0:
        return None
    return (Decimal(str(new_price)) - old_price) / old_price * 100


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class PriceUpdate:
    """One price row to be written by a sync run."""
    crop_id: int
    region_id: int
    price: Decimal
    unit: str = "kg"
    # Carried by fallback rows so the orchestrator skips the lookup
    crop_name: Optional[str] = None
    region_name: Optional[str] = None
    old_price: Optional[Decimal] = None


@dataclass
class StoredPrice:
    """Price row joined with crop and region names."""
    id: int
    crop_id: int
    region_id: int
    price: Decimal
    previous_price: Optional[Decimal]
    unit: str
    updated_at: Optional[datetime]
    updated_by: Optional[int]
    crop_name: Optional[str] = None
    crop_category: Optional[str] = None
    region_name: Optional[str] = None

    @classmethod
    def from_db_row(cls, price, crop_name=None, crop_category=None, region_name=None) -> "StoredPrice":
        """Create StoredPrice from a Price model instance and joined names."""
        return cls(
            id=price.id,
            crop_id=price.crop_id,
            region_id=price.region_id,
            price=round_price(price.price),
            previous_price=round_price(price.previous_price) if price.previous_price is not None else None,
            unit=price.unit,
            updated_at=price.updated_at,
            updated_by=price.updated_by,
            crop_name=crop_name,
            crop_category=crop_category,
            region_name=region_name,
        )

    @property
    def price_change_percent(self) -> Decimal:
        change = compute_change_percent(self.previous_price, self.price)
        if change is None:
            return Decimal("0.00")
        return round_price(change)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation used by the HTTP layer and the cache."""
        return {
            "id": self.id,
            "crop_id": self.crop_id,
            "region_id": self.region_id,
            "crop_name": self.crop_name,
            "crop_category": self.crop_category,
            "region_name": self.region_name,
            "price": float(self.price),
            "previous_price": float(self.previous_price) if self.previous_price is not None else None,
            "price_change_percent": float(self.price_change_percent),
            "unit": self.unit,
            "updated_at": _iso(self.updated_at),
            "updated_by": self.updated_by,
        }

    def to_broadcast_dict(self) -> Dict[str, Any]:
        """Compact representation pushed to live listeners."""
        return {
            "crop": self.crop_name,
            "region": self.region_name,
            "price": float(self.price),
            "unit": self.unit,
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class SyncStats:
    """Result of one market price sync run."""
    start_time: datetime
    end_time: Optional[datetime] = None
    prices_updated: int = 0
    prices_unchanged: int = 0  # Subset of prices_updated whose value did not move
    alerts_sent: int = 0  # Notifications created
    source: Optional[str] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    skipped: bool = False  # Refused because another run was in progress

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "prices_updated": self.prices_updated,
            "prices_unchanged": self.prices_unchanged,
            "alerts_sent": self.alerts_sent,
            "source": self.source,
            "errors": list(self.errors),
            "skipped": self.skipped,
        }
