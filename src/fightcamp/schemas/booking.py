"""
Booking Pydantic Schemas
Request and response models for Booking endpoints
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from fightcamp.models.booking import BookingStatus
from fightcamp.models.gym import BookingMode


class BookingCreate(BaseModel):
    """
    Schema for creating a new booking

    Required fields are checked by the booking service so the error can
    name the one that is missing.
    """

    gym_id: Optional[UUID] = None
    package_id: Optional[UUID] = None
    package_variant_id: Optional[UUID] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    discipline: Optional[str] = None
    experience_level: Optional[str] = None
    notes: Optional[str] = None

    total_price: Optional[float] = Field(None, ge=0)
    platform_fee: Optional[float] = Field(None, ge=0)

    # Guest identity, required together when not signed in
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    guest_name: Optional[str] = None


class BookingCreated(BaseModel):
    """Returned once, right after creation; the only response carrying the PIN"""

    booking_id: UUID
    booking_reference: str
    booking_pin: str
    status: BookingStatus


class DeclineRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class ConfirmPaymentRequest(BaseModel):
    payment_intent: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    client_secret: str


class StatusResponse(BaseModel):
    success: bool = True
    status: BookingStatus


class ConfirmPaymentResponse(BaseModel):
    success: bool = True
    already_confirmed: bool = False


class CaptureResponse(BaseModel):
    success: bool = True
    already_captured: bool = False


class SyncResponse(BaseModel):
    synced: bool
    payment_intent_id: Optional[str] = None
    stripe_status: Optional[str] = None
    booking_status: Optional[str] = None
    already_confirmed: bool = False
    status_updated: bool = False


# Embedded records for guest views
class GymSummary(BaseModel):
    id: UUID
    name: str
    city: Optional[str]
    country: Optional[str]
    currency: str
    email: Optional[str]
    phone: Optional[str]

    class Config:
        from_attributes = True


class PackageSummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    booking_mode: Optional[BookingMode]
    includes_meals: Optional[bool]

    class Config:
        from_attributes = True


class VariantSummary(BaseModel):
    id: UUID
    name: str
    price: Optional[float]

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    """Schema for Booking responses (never includes the PIN)"""

    id: UUID
    booking_reference: Optional[str]
    user_id: Optional[UUID]
    guest_email: Optional[str]
    guest_phone: Optional[str]
    guest_name: Optional[str]

    gym_id: UUID
    package_id: Optional[UUID]
    package_variant_id: Optional[UUID]
    start_date: date
    end_date: date
    discipline: str
    experience_level: str
    notes: Optional[str]
    total_price: float
    platform_fee: Optional[float]

    stripe_payment_intent_id: Optional[str]
    status: BookingStatus
    decline_reason: Optional[str]

    request_submitted_at: Optional[datetime]
    gym_confirmed_at: Optional[datetime]
    confirmed_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GuestBookingResponse(BookingResponse):
    """Booking joined with its gym, package and variant for guest self-service"""

    gym: GymSummary
    package: Optional[PackageSummary] = None
    variant: Optional[VariantSummary] = None


class BookingList(BaseModel):
    """Schema for list of bookings"""

    bookings: List[BookingResponse]
    total: int
    page: int = 1
    page_size: int = 50
