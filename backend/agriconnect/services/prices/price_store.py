"""
Price store gateway.

Crop/region lookups and price reads/writes used by the sync service and the
price API. Every function takes the caller's session; writes commit.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Optional, List, Dict, Tuple
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from agriconnect.models.crop import Crop
from agriconnect.models.region import Region
from agriconnect.models.price import Price
from agriconnect.models.user import User, UserRole
from agriconnect.services.prices.price_models import StoredPrice, round_price

logger = logging.getLogger(__name__)


def load_name_indices(db: Session) -> Tuple[Dict[str, int], Dict[str, int]]:
    """
    Load crop and region name -> id maps.

    Returns:
        Tuple of (crop_index, region_index), keys lower-cased
    """
    crop_index = {name.lower(): crop_id for crop_id, name in db.query(Crop.id, Crop.name).all()}
    region_index = {name.lower(): region_id for region_id, name in db.query(Region.id, Region.name).all()}
    return crop_index, region_index


def _joined_query(db: Session):
    return (
        db.query(Price, Crop.name, Crop.category, Region.name)
        .join(Crop, Price.crop_id == Crop.id)
        .join(Region, Price.region_id == Region.id)
    )


def _to_stored(row) -> StoredPrice:
    price, crop_name, crop_category, region_name = row
    return StoredPrice.from_db_row(price, crop_name, crop_category, region_name)


def _apply_filters(query, crop_id=None, region_id=None, crop=None, region=None):
    if crop_id is not None:
        query = query.filter(Price.crop_id == crop_id)
    if region_id is not None:
        query = query.filter(Price.region_id == region_id)
    if crop is not None:
        query = query.filter(func.lower(Crop.name) == crop.lower())
    if region is not None:
        query = query.filter(func.lower(Region.name) == region.lower())
    return query


def get_price(db: Session, crop_id: int, region_id: int) -> Optional[StoredPrice]:
    """Get the price for a crop in a region, or None."""
    row = _joined_query(db).filter(Price.crop_id == crop_id, Price.region_id == region_id).first()
    return _to_stored(row) if row else None


def list_prices(
    db: Session,
    crop_id: Optional[int] = None,
    region_id: Optional[int] = None,
    crop: Optional[str] = None,
    region: Optional[str] = None,
) -> List[StoredPrice]:
    """All prices matching the filters, ordered by crop then region name."""
    query = _apply_filters(_joined_query(db), crop_id, region_id, crop, region)
    return [_to_stored(row) for row in query.order_by(Crop.name, Region.name).all()]


def find_prices_page(
    db: Session,
    crop_id: Optional[int] = None,
    region_id: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    """Paginated price listing."""
    query = _apply_filters(_joined_query(db), crop_id, region_id)
    total = query.count()
    rows = query.order_by(Crop.name, Region.name).offset((page - 1) * limit).limit(limit).all()
    return {
        "prices": [_to_stored(row) for row in rows],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


# Dialects with INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _locked_price_row(db: Session, crop_id: int, region_id: int) -> Optional[Price]:
    return (
        db.query(Price)
        .filter(Price.crop_id == crop_id, Price.region_id == region_id)
        .with_for_update()
        .first()
    )


def _upsert_on_conflict(db: Session, dialect_insert, values: dict):
    stmt = dialect_insert(Price).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Price.crop_id, Price.region_id],
        set_={
            "previous_price": Price.price,
            "price": stmt.excluded.price,
            "unit": stmt.excluded.unit,
            "updated_by": stmt.excluded.updated_by,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)
    db.commit()


def _upsert_locked(db: Session, values: dict, attempts: int = 2):
    """Row-lock upsert for dialects without ON CONFLICT; a lost insert race retries as an update."""
    for attempt in range(1, attempts + 1):
        record = _locked_price_row(db, values["crop_id"], values["region_id"])
        if record:
            record.previous_price = record.price
            record.price = values["price"]
            record.unit = values["unit"]
            record.updated_by = values["updated_by"]
            record.updated_at = values["updated_at"]
        else:
            db.add(Price(**values))
        try:
            db.commit()
            return
        except IntegrityError:
            db.rollback()
            if attempt == attempts:
                raise
            logger.info(
                f"Price for crop {values['crop_id']} in region {values['region_id']} "
                f"was inserted concurrently, retrying as update"
            )


def upsert_price(
    db: Session,
    crop_id: int,
    region_id: int,
    price,
    unit: str = "kg",
    updated_by: Optional[int] = None,
) -> StoredPrice:
    """
    Insert or update the price for a crop/region pair in one atomic statement.

    On update the current price moves into previous_price. updated_by=None
    marks a system update.
    """
    values = {
        "crop_id": crop_id,
        "region_id": region_id,
        "price": round_price(price),
        "unit": unit or "kg",
        "updated_by": updated_by,
        "updated_at": datetime.now(timezone.utc),
    }
    dialect_insert = UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if dialect_insert is not None:
        _upsert_on_conflict(db, dialect_insert, values)
    else:
        _upsert_locked(db, values)

    record = db.query(Price).filter(Price.crop_id == crop_id, Price.region_id == region_id).one()
    db.refresh(record)

    crop = db.get(Crop, crop_id)
    region = db.get(Region, region_id)
    return StoredPrice.from_db_row(
        record,
        crop.name if crop else None,
        crop.category if crop else None,
        region.name if region else None,
    )


def delete_price(db: Session, crop_id: int, region_id: int) -> Optional[StoredPrice]:
    """Delete a price row. Returns the deleted row or None if absent."""
    existing = get_price(db, crop_id, region_id)
    if not existing:
        return None
    db.query(Price).filter(Price.crop_id == crop_id, Price.region_id == region_id).delete()
    db.commit()
    return existing


def get_crop_name(db: Session, crop_id: int) -> Optional[str]:
    crop = db.get(Crop, crop_id)
    return crop.name if crop else None


def get_region_name(db: Session, region_id: int) -> Optional[str]:
    region = db.get(Region, region_id)
    return region.name if region else None


def get_active_farmer_ids(db: Session) -> List[int]:
    """Ids of all active farmer accounts."""
    rows = db.query(User.id).filter(User.role == UserRole.FARMER, User.is_active == True).all()
    return [row[0] for row in rows]
