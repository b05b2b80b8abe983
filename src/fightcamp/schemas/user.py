"""
User and Authentication Schemas
Pydantic models for request/response validation
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from fightcamp.models.user import UserRole


# Authentication Schemas
class Token(BaseModel):
    """Response schema for login"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: "UserResponse"


class TokenRefresh(BaseModel):
    """Request schema for token refresh"""

    refresh_token: str


class LoginRequest(BaseModel):
    """Request schema for login"""

    email: EmailStr
    password: str = Field(..., min_length=6)


# User Schemas
class UserCreate(BaseModel):
    """Schema for registering a fighter or gym owner"""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    role: UserRole = UserRole.FIGHTER

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        """Ensure password meets requirements"""
        if not any(char.isdigit() for char in v):
            raise ValueError("Password must contain at least one digit")
        if not any(char.isupper() for char in v):
            raise ValueError("Password must contain at least one uppercase letter")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        # Admins are created by hand, never through the public endpoint
        if v == UserRole.ADMIN:
            raise ValueError("Cannot register as admin")
        return v


class UserResponse(BaseModel):
    """Schema for user response (without sensitive data)"""

    id: UUID
    email: str
    full_name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


# Update forward references
Token.model_rebuild()
