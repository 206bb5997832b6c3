"""
Crop model (produce reference data).
"""
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from agriconnect.core.database import Base


class Crop(Base):
    __tablename__ = "crops"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)  # e.g., "Maize", "Tomatoes"
    category = Column(String(50), nullable=False)  # "grains", "legumes", "vegetables", "fruits", ...
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
