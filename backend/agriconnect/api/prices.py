"""
Market price endpoints.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from agriconnect.core.auth import require_admin_key
from agriconnect.core.container import ServiceContainer, get_container
from agriconnect.core.database import get_db
from agriconnect.services.prices import price_store
from agriconnect.services.prices.price_reader import get_latest_prices

router = APIRouter()
logger = logging.getLogger(__name__)


class PriceResponse(BaseModel):
    """Price response model."""
    id: int
    crop_id: int
    region_id: int
    crop_name: Optional[str] = None
    crop_category: Optional[str] = None
    region_name: Optional[str] = None
    price: float
    previous_price: Optional[float] = None
    price_change_percent: float
    unit: str
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None


class PriceListResponse(BaseModel):
    """Paginated price list response model."""
    prices: List[PriceResponse]
    total: int
    page: int
    total_pages: int


class LatestPricesResponse(BaseModel):
    """Latest prices (cached read path) response model."""
    data: List[PriceResponse]
    cached: bool
    cached_at: Optional[datetime] = None
    last_sync: Optional[datetime] = None


class PriceUpsertRequest(BaseModel):
    """Request model for creating or updating a price."""
    crop_id: int
    region_id: int
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    unit: str = Field(default="kg", min_length=1, max_length=20)
    updated_by: Optional[int] = None  # Acting admin user id


class PriceBulkRequest(BaseModel):
    """Request model for bulk price updates."""
    prices: List[PriceUpsertRequest]


@router.get("/latest", response_model=LatestPricesResponse)
def latest_prices(
    crop: Optional[str] = Query(None, description="Crop name"),
    region: Optional[str] = Query(None, description="Region name"),
    crop_id: Optional[int] = None,
    region_id: Optional[int] = None,
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Latest prices, served from the price cache when fresh."""
    return get_latest_prices(db, container.cache, {
        "crop": crop,
        "region": region,
        "crop_id": crop_id,
        "region_id": region_id,
    })


@router.get("/sync-status")
def sync_status(container: ServiceContainer = Depends(get_container)):
    """Last sync time, cache statistics and scheduler state."""
    status_info = container.sync_service.get_sync_status()
    status_info["scheduler"] = container.scheduler.get_status()
    return status_info


@router.post("/sync", dependencies=[Depends(require_admin_key)])
def trigger_sync(container: ServiceContainer = Depends(get_container)):
    """Run a market price sync now and return its stats."""
    stats = container.scheduler.trigger_sync()
    return stats.to_dict()


@router.get("", response_model=PriceListResponse)
def list_prices(
    crop_id: Optional[int] = None,
    region_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """All current prices, paginated."""
    result = price_store.find_prices_page(db, crop_id=crop_id, region_id=region_id, page=page, limit=limit)
    result["prices"] = [p.to_dict() for p in result["prices"]]
    return result


@router.get("/crop/{crop_id}", response_model=List[PriceResponse])
def prices_for_crop(crop_id: int, db: Session = Depends(get_db)):
    """Prices for one crop across all regions."""
    return [p.to_dict() for p in price_store.list_prices(db, crop_id=crop_id)]


@router.get("/region/{region_id}", response_model=List[PriceResponse])
def prices_for_region(region_id: int, db: Session = Depends(get_db)):
    """Prices for all crops in one region."""
    return [p.to_dict() for p in price_store.list_prices(db, region_id=region_id)]


@router.get("/crop/{crop_id}/region/{region_id}", response_model=PriceResponse)
def price_for_crop_and_region(crop_id: int, region_id: int, db: Session = Depends(get_db)):
    """Price for a crop in a region."""
    price = price_store.get_price(db, crop_id, region_id)
    if not price:
        raise HTTPException(status_code=404, detail="Price not found for this crop and region")
    return price.to_dict()


def _upsert(request: PriceUpsertRequest, db: Session, container: ServiceContainer):
    try:
        price = price_store.upsert_price(
            db,
            crop_id=request.crop_id,
            region_id=request.region_id,
            price=request.price,
            unit=request.unit,
            updated_by=request.updated_by,
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating price for crop {request.crop_id} in region {request.region_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update price")
    container.cache.invalidate_all()
    return price.to_dict()


@router.post("", response_model=PriceResponse, dependencies=[Depends(require_admin_key)])
def create_price(
    request: PriceUpsertRequest,
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Create or update a price (admin)."""
    return _upsert(request, db, container)


@router.put("", response_model=PriceResponse, dependencies=[Depends(require_admin_key)])
def update_price(
    request: PriceUpsertRequest,
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Create or update a price (admin)."""
    return _upsert(request, db, container)


@router.post("/bulk", dependencies=[Depends(require_admin_key)])
def bulk_upsert_prices(
    request: PriceBulkRequest,
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Create or update many prices (admin)."""
    if not request.prices:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prices array is required")

    updated = []
    try:
        for item in request.prices:
            updated.append(price_store.upsert_price(
                db,
                crop_id=item.crop_id,
                region_id=item.region_id,
                price=item.price,
                unit=item.unit,
                updated_by=item.updated_by,
            ))
    except Exception as e:
        db.rollback()
        logger.error(f"Error in bulk price update after {len(updated)} rows: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update prices")
    finally:
        if updated:
            container.cache.invalidate_all()

    return {
        "message": f"{len(updated)} prices updated successfully",
        "data": [p.to_dict() for p in updated],
    }


@router.delete("/crop/{crop_id}/region/{region_id}", dependencies=[Depends(require_admin_key)])
def delete_price(
    crop_id: int,
    region_id: int,
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Delete a price (admin)."""
    deleted = price_store.delete_price(db, crop_id, region_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Price not found")
    container.cache.invalidate_all()
    return {"message": "Price deleted successfully"}
