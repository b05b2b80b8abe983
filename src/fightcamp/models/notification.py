"""
Notification Model
Tracks booking emails and texts sent to guests, gym owners and admins
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from fightcamp.database import Base


class NotificationType(str, enum.Enum):
    """Type of notification"""

    REQUEST_RECEIVED = "request_received"  # Guest: we got your booking
    NEW_BOOKING = "new_booking"  # Admin / gym owner: a booking came in
    REQUEST_ACCEPTED = "request_accepted"  # Guest: pay to secure your spot
    REQUEST_DECLINED = "request_declined"
    BOOKING_CONFIRMED = "booking_confirmed"  # Guest: payment captured
    BOOKING_CANCELLED = "booking_cancelled"
    ACCESS_LINK = "access_link"  # Guest: recovered magic link


class NotificationStatus(str, enum.Enum):
    """Status of notification"""

    SENT = "sent"
    FAILED = "failed"


class NotificationChannel(str, enum.Enum):
    """Channel used for notification"""

    SMS = "sms"
    EMAIL = "email"


class Notification(Base):
    """
    Notification Model
    One row per delivery attempt. Delivery is best-effort, so a FAILED row
    never implies the booking transition failed.
    """

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), index=True)

    # Notification Details
    notification_type = Column(
        SQLEnum(NotificationType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    channel = Column(
        SQLEnum(NotificationChannel, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    status = Column(
        SQLEnum(NotificationStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )

    # Recipient
    recipient = Column(String(255), nullable=False)

    # Content
    subject = Column(String(255))  # For emails
    message = Column(Text, nullable=False)

    # Provider Details
    provider = Column(String(50))  # resend, twilio
    provider_message_id = Column(String(255))

    # Delivery tracking
    sent_at = Column(DateTime)
    error_message = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    booking = relationship("Booking")

    def __repr__(self):
        return f"<Notification(type='{self.notification_type}', channel='{self.channel}', status='{self.status}')>"
