"""
Database Models Package
Exports all SQLAlchemy models
"""

from fightcamp.models.access_token import BookingAccessToken
from fightcamp.models.booking import Booking
from fightcamp.models.gym import Gym, Package, PackageVariant
from fightcamp.models.notification import Notification
from fightcamp.models.user import User

__all__ = [
    "User",
    "Gym",
    "Package",
    "PackageVariant",
    "Booking",
    "BookingAccessToken",
    "Notification",
]
