"""
Database models.
"""
from agriconnect.models.user import User, UserRole
from agriconnect.models.crop import Crop
from agriconnect.models.region import Region
from agriconnect.models.price import Price
from agriconnect.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "UserRole",
    "Crop",
    "Region",
    "Price",
    "Notification",
    "NotificationType",
]
