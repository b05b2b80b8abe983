"""
Booking Access Token Model
Magic-link capabilities granting a guest read access to one booking
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from fightcamp.database import Base


class BookingAccessToken(Base):
    """
    Only the SHA-256 of the raw token is stored; the raw value leaves the
    system once, in the issuance response.
    """

    __tablename__ = "booking_access_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), nullable=False, index=True)

    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)

    expires_at = Column(DateTime, nullable=False)
    is_single_use = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking", back_populates="access_tokens")

    def __repr__(self):
        return f"<BookingAccessToken(booking_id='{self.booking_id}', expires_at='{self.expires_at}')>"
