"""
Market price model (one row per crop and region).
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agriconnect.core.database import Base


class Price(Base):
    __tablename__ = "prices"
    __table_args__ = (
        UniqueConstraint("crop_id", "region_id", name="uq_prices_crop_region"),
    )

    id = Column(Integer, primary_key=True, index=True)
    crop_id = Column(Integer, ForeignKey("crops.id"), nullable=False, index=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)  # Pula per unit
    previous_price = Column(Numeric(10, 2), nullable=True)  # Shifted from price on every update
    unit = Column(String(20), nullable=False, default="kg")
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = system sync
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    crop = relationship("Crop")
    region = relationship("Region")
