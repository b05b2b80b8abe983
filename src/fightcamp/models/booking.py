"""
Booking Model
Tracks training-camp bookings made by guests and fighters
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from fightcamp.database import Base


class BookingStatus(str, enum.Enum):
    """Status of booking"""

    PENDING = "pending"  # Request submitted, waiting for the gym
    PENDING_PAYMENT = "pending_payment"  # Payment authorization expected
    PENDING_CONFIRMATION = "pending_confirmation"  # Funds held, waiting for capture
    GYM_CONFIRMED = "gym_confirmed"  # Gym accepted the request, guest pays next
    AWAITING_APPROVAL = "awaiting_approval"  # Legacy alias, only reachable by old rows
    DECLINED = "declined"
    CONFIRMED = "confirmed"  # Payment captured
    COMPLETED = "completed"  # Stay is over
    CANCELLED = "cancelled"


class Booking(Base):
    """
    Booking Model
    Either user_id is set, or the guest_* contact fields are.
    Rows are never deleted: decline and cancellation are statuses.
    """

    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Human-shareable identity
    booking_reference = Column(String(10), index=True)
    booking_pin = Column(String(6))

    # Parties
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    guest_email = Column(String(255), index=True)
    guest_phone = Column(String(30))
    guest_name = Column(String(255))

    # Commercial terms
    gym_id = Column(Uuid, ForeignKey("gyms.id"), nullable=False, index=True)
    package_id = Column(Uuid, ForeignKey("packages.id"), nullable=True)
    package_variant_id = Column(Uuid, ForeignKey("package_variants.id"), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    discipline = Column(String(100), nullable=False)
    experience_level = Column(String(50), nullable=False)
    notes = Column(Text)
    total_price = Column(Float, nullable=False)
    platform_fee = Column(Float)

    # Payment linkage
    stripe_payment_intent_id = Column(String(255), index=True)

    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda x: [e.value for e in x]),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    decline_reason = Column(Text)

    # Lifecycle timestamps
    request_submitted_at = Column(DateTime)
    gym_confirmed_at = Column(DateTime)
    confirmed_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    gym = relationship("Gym", back_populates="bookings")
    user = relationship("User")
    package = relationship("Package")
    variant = relationship("PackageVariant")
    access_tokens = relationship("BookingAccessToken", back_populates="booking")

    def __repr__(self):
        return f"<Booking(reference='{self.booking_reference}', status='{self.status}')>"

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def contact_email(self):
        if self.guest_email:
            return self.guest_email
        return self.user.email if self.user else None
