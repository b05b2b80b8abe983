"""
Guest Access Schemas
Magic-link tokens and reference + PIN self-service
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AccessTokenRequest(BaseModel):
    """Email is checked in the route so a missing one is a plain 400"""

    email: Optional[str] = None
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)
    single_use: bool = False


class AccessTokenResponse(BaseModel):
    token: str
    expires_at: datetime


class AccessTokenValidation(BaseModel):
    booking_id: UUID
    email: str
    expires_at: datetime


class GuestAccessRequest(BaseModel):
    booking_reference: str = Field(..., min_length=1, max_length=20)
    pin: str = Field(..., min_length=1, max_length=10)


class AccessLinkRequest(BaseModel):
    email: str = Field(..., min_length=3)
    booking_reference: str = Field(..., min_length=1, max_length=20)


class MessageResponse(BaseModel):
    success: bool = True
    message: str
