"""
Region model (Botswana districts and market towns).
"""
from sqlalchemy import Column, Integer, String, Numeric
from agriconnect.core.database import Base


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)  # e.g., "Gaborone", "Central"
    latitude = Column(Numeric(9, 6), nullable=True)
    longitude = Column(Numeric(9, 6), nullable=True)
