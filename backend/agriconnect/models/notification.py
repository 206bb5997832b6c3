"""
Notification model (user-facing inbox).
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from agriconnect.core.database import Base


class NotificationType:
    PRICE_UPDATE = "price_update"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # See NotificationType
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    reference_id = Column(Integer, nullable=True)  # e.g., crop id for price alerts
    reference_type = Column(String(50), nullable=True)  # e.g., "price"
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
