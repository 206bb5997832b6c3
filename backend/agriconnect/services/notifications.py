"""
Notification service.
"""
import logging
from typing import List, Dict, Any
from sqlalchemy import insert
from sqlalchemy.orm import Session
from agriconnect.models.notification import Notification

logger = logging.getLogger(__name__)

NOTIFICATION_FIELDS = ("user_id", "type", "title", "message", "reference_id", "reference_type")


def create_notifications(db: Session, notifications: List[Dict[str, Any]]) -> int:
    """
    Persist many notifications in one bulk INSERT.

    Args:
        db: Database session
        notifications: Dicts with user_id, type, title, message,
            reference_id and reference_type

    Returns:
        Number of notifications created
    """
    if not notifications:
        return 0

    rows = [
        {**{name: item.get(name) for name in NOTIFICATION_FIELDS}, "is_read": False}
        for item in notifications
    ]
    try:
        db.execute(insert(Notification), rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.debug(f"Created {len(rows)} notifications")
    return len(rows)
