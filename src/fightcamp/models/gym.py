"""
Gym Models
Training camps listed on the marketplace, with their bookable packages
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from fightcamp.database import Base


class GymStatus(str, enum.Enum):
    """Marketplace approval (legacy field, still checked at booking time)"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class BookingMode(str, enum.Enum):
    """How a package is booked"""

    REQUEST_TO_BOOK = "request_to_book"  # Gym accepts first, guest pays after
    INSTANT = "instant"  # Payment authorized right away


class Gym(Base):
    """
    Gym Model
    A combat-sports training camp owned by a single user
    """

    __tablename__ = "gyms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Basic Information
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    email = Column(String(255))
    phone = Column(String(30))

    # Location
    address = Column(Text)
    city = Column(String(100))
    country = Column(String(100))

    # Offering
    disciplines = Column(JSON, default=list)  # e.g. ["muay_thai", "bjj"]
    currency = Column(String(10), default="USD", nullable=False)

    # Marketplace state
    status = Column(
        SQLEnum(GymStatus, values_callable=lambda x: [e.value for e in x]),
        default=GymStatus.PENDING,
        nullable=False,
    )
    verification_status = Column(
        SQLEnum(VerificationStatus, values_callable=lambda x: [e.value for e in x]),
        default=VerificationStatus.DRAFT,
        nullable=False,
    )

    # Payouts (settled manually for now)
    stripe_account_id = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="gyms")
    packages = relationship("Package", back_populates="gym", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="gym")

    def __repr__(self):
        return f"<Gym(name='{self.name}', status='{self.status}')>"


class Package(Base):
    """Pricing and booking-mode configuration for a gym offering"""

    __tablename__ = "packages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gym_id = Column(Uuid, ForeignKey("gyms.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Float)
    booking_mode = Column(
        SQLEnum(BookingMode, values_callable=lambda x: [e.value for e in x]),
        default=BookingMode.REQUEST_TO_BOOK,
        nullable=True,
    )
    includes_meals = Column(Boolean, default=False)
    meal_plan_details = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    gym = relationship("Gym", back_populates="packages")
    variants = relationship("PackageVariant", back_populates="package", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Package(name='{self.name}', booking_mode='{self.booking_mode}')>"


class PackageVariant(Base):
    """A priced option of a package (room type, duration...)"""

    __tablename__ = "package_variants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    package_id = Column(Uuid, ForeignKey("packages.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    price = Column(Float)

    created_at = Column(DateTime, default=datetime.utcnow)

    package = relationship("Package", back_populates="variants")
