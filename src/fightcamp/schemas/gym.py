"""
Gym Pydantic Schemas
Request and response models for gyms, packages and variants
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from fightcamp.models.gym import BookingMode, GymStatus, VerificationStatus


class GymCreate(BaseModel):
    """Schema for an owner listing a new gym"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    disciplines: List[str] = []
    currency: str = Field("USD", min_length=3, max_length=3)
    submit_for_verification: bool = False


class GymVerify(BaseModel):
    approve: bool
    reason: Optional[str] = None


class GymResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    country: Optional[str]
    disciplines: Optional[List[str]]
    currency: str
    status: GymStatus
    verification_status: VerificationStatus
    created_at: datetime

    class Config:
        from_attributes = True


class PackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    booking_mode: BookingMode = BookingMode.REQUEST_TO_BOOK
    includes_meals: bool = False
    meal_plan_details: Optional[Dict[str, Any]] = None


class VariantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)


class VariantResponse(BaseModel):
    id: UUID
    package_id: UUID
    name: str
    price: Optional[float]

    class Config:
        from_attributes = True


class PackageResponse(BaseModel):
    id: UUID
    gym_id: UUID
    name: str
    description: Optional[str]
    price: Optional[float]
    booking_mode: Optional[BookingMode]
    includes_meals: Optional[bool]
    meal_plan_details: Optional[Dict[str, Any]]
    variants: List[VariantResponse] = []

    class Config:
        from_attributes = True
