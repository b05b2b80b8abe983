"""
Pydantic Schemas Package
Exports all request/response schemas
"""

from fightcamp.schemas.access import (
    AccessLinkRequest,
    AccessTokenRequest,
    AccessTokenResponse,
    AccessTokenValidation,
    GuestAccessRequest,
    MessageResponse,
)
from fightcamp.schemas.booking import (
    BookingCreate,
    BookingCreated,
    BookingList,
    BookingResponse,
    CaptureResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    DeclineRequest,
    GuestBookingResponse,
    PaymentIntentResponse,
    StatusResponse,
    SyncResponse,
)
from fightcamp.schemas.gym import (
    GymCreate,
    GymResponse,
    GymVerify,
    PackageCreate,
    PackageResponse,
    VariantCreate,
    VariantResponse,
)
from fightcamp.schemas.user import LoginRequest, Token, TokenRefresh, UserCreate, UserResponse

__all__ = [
    # Booking schemas
    "BookingCreate",
    "BookingCreated",
    "BookingResponse",
    "BookingList",
    "GuestBookingResponse",
    "DeclineRequest",
    "ConfirmPaymentRequest",
    "ConfirmPaymentResponse",
    "PaymentIntentResponse",
    "CaptureResponse",
    "StatusResponse",
    "SyncResponse",
    # Guest access schemas
    "AccessTokenRequest",
    "AccessTokenResponse",
    "AccessTokenValidation",
    "GuestAccessRequest",
    "AccessLinkRequest",
    "MessageResponse",
    # Gym schemas
    "GymCreate",
    "GymResponse",
    "GymVerify",
    "PackageCreate",
    "PackageResponse",
    "VariantCreate",
    "VariantResponse",
    # User schemas
    "UserCreate",
    "UserResponse",
    "LoginRequest",
    "Token",
    "TokenRefresh",
]
