"""
Price alert dispatcher.

When a crop/region price moves by at least the alert threshold, every active
farmer gets an in-app notification.
"""
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from agriconnect.core.config import PRICE_ALERT_THRESHOLD_PERCENT
from agriconnect.core.sync_log import format_change, log_notifications_sent
from agriconnect.models.notification import NotificationType
from agriconnect.services import notifications
from agriconnect.services.prices import price_store
from agriconnect.services.prices.price_models import compute_change_percent


def build_alert(crop_name: str, region_name: str, new_price, change_percent: Decimal, unit: str = "kg") -> dict:
    """Title and message for a price alert."""
    rising = change_percent > 0
    direction = "increased" if rising else "decreased"
    hint = "Consider selling now!" if rising else "Consider holding stock."
    return {
        "title": f"{crop_name} Price Alert",
        "message": (
            f"{crop_name} price in {region_name} has {direction} by {format_change(change_percent, 1)}. "
            f"New price: P{Decimal(str(new_price)):.2f}/{unit}. {hint}"
        ),
    }


class PriceAlertDispatcher:
    """Evaluates price swings and fans alerts out to farmers."""

    def __init__(self, threshold_percent: float = PRICE_ALERT_THRESHOLD_PERCENT):
        self.threshold = Decimal(str(threshold_percent))

    def exceeds_threshold(self, change_percent: Optional[Decimal]) -> bool:
        return change_percent is not None and abs(change_percent) >= self.threshold

    def check_price_alerts(
        self,
        db: Session,
        crop_id: int,
        region_id: int,
        old_price,
        new_price,
        crop_name: str,
        region_name: str,
        unit: str = "kg",
    ) -> int:
        """
        Notify all active farmers if the price moved past the threshold.

        Returns:
            Number of notifications created (0 when below threshold, when
            old_price is missing or not positive, or when there are no farmers)
        """
        if not old_price or old_price <= 0:
            return 0

        change_percent = compute_change_percent(old_price, new_price)
        if not self.exceeds_threshold(change_percent):
            return 0

        farmer_ids = price_store.get_active_farmer_ids(db)
        if not farmer_ids:
            return 0

        alert = build_alert(crop_name, region_name, new_price, change_percent, unit)
        created = notifications.create_notifications(db, [
            {
                "user_id": farmer_id,
                "type": NotificationType.PRICE_UPDATE,
                "title": alert["title"],
                "message": alert["message"],
                "reference_id": crop_id,
                "reference_type": "price",
            }
            for farmer_id in farmer_ids
        ])

        log_notifications_sent("price_alert", created, {
            "crop": crop_name,
            "region": region_name,
            "change": format_change(change_percent, 1),
        })
        return created
