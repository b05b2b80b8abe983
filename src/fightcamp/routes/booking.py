"""
Booking API Routes
Booking lifecycle endpoints for guests, fighters, gym owners and admins
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Header
from sqlalchemy.orm import Session

from fightcamp.database import get_db
from fightcamp.dependencies.auth import get_admin, get_current_user, get_optional_user, issue_admin_capability
from fightcamp.dependencies.services import get_booking_service, get_guest_access_service, get_payment_service
from fightcamp.exceptions import Forbidden, ValidationFailed
from fightcamp.models.user import User, UserRole
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
    CaptureResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    DeclineRequest,
    GuestBookingResponse,
    PaymentIntentResponse,
    StatusResponse,
    SyncResponse,
)
from fightcamp.services import booking_state
from fightcamp.services.access_token_service import AccessTokenService
from fightcamp.services.booking_service import BookingService
from fightcamp.services.guest_access_service import GuestAccessService
from fightcamp.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

ACCESS_TOKEN_HEADER = "X-Booking-Token"


@router.post("", response_model=BookingCreated)
def create_booking(
    booking_data: BookingCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    """
    Create a booking as a guest or signed-in fighter

    The PIN is returned here once; no other endpoint exposes it.
    """
    return service.create_booking(booking_data, current_user)


# Guest self-service


@router.post("/guest-access", response_model=GuestBookingResponse)
def guest_access(
    request: GuestAccessRequest,
    service: GuestAccessService = Depends(get_guest_access_service),
):
    """Look up a booking by reference and PIN"""
    return service.lookup_by_pin(request.booking_reference, request.pin)


@router.post("/request-access", response_model=MessageResponse)
def request_access(
    request: AccessLinkRequest,
    service: GuestAccessService = Depends(get_guest_access_service),
):
    """Email a new magic link; the answer is the same whether or not the booking exists"""
    return {"success": True, "message": service.request_access_link(request.email, request.booking_reference)}


@router.get("/access/{token}", response_model=AccessTokenValidation)
def validate_access_token(token: str, db: Session = Depends(get_db)):
    access = AccessTokenService(db).validate(token)
    return {"booking_id": access.booking_id, "email": access.email, "expires_at": access.expires_at}


@router.post("/complete-past-stays")
def complete_past_stays(
    current_user: User = Depends(get_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Mark confirmed bookings whose stay has ended as completed (admin only)"""
    capability = issue_admin_capability(f"manual completion run by {current_user.email}")
    completed = service.complete_past_stays(capability)
    return {"success": True, "completed": [str(booking_id) for booking_id in completed]}


# Single booking


@router.get("/{booking_id}", response_model=GuestBookingResponse)
def get_booking(
    booking_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    access_token: Optional[str] = Header(None, alias=ACCESS_TOKEN_HEADER),
    db: Session = Depends(get_db),
):
    """Booking details for the gym owner, an admin, the booking's fighter, or a magic-link holder"""
    record = booking_state.load_booking_with_gym(db, booking_id)
    booking = record.booking

    if current_user is not None:
        if not (
            current_user.role == UserRole.ADMIN
            or record.gym.owner_id == current_user.id
            or booking.user_id == current_user.id
        ):
            raise Forbidden("Forbidden")
    elif access_token:
        # Account bookings have no guest email to bind a token to
        if not booking.guest_email:
            raise Forbidden("Sign in to view this booking")
        access = AccessTokenService(db).validate(access_token)
        if access.booking_id != booking.id:
            raise Forbidden("Token does not grant access to this booking")
    else:
        raise Forbidden("Forbidden")

    return booking


@router.post("/{booking_id}/accept-request", response_model=StatusResponse)
def accept_request(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Gym owner or admin accepts a pending request; the guest is sent a payment link"""
    return {"success": True, "status": service.accept_request(booking_id, current_user)}


@router.post("/{booking_id}/decline-request", response_model=StatusResponse)
def decline_request(
    booking_id: UUID,
    request: Optional[DeclineRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    reason = request.reason if request else None
    return {"success": True, "status": service.decline_request(booking_id, current_user, reason)}


@router.post("/{booking_id}/decline", response_model=StatusResponse)
def decline_legacy(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Decline a booking whose payment was authorized before the gym decided (old flow)"""
    return {"success": True, "status": service.decline_legacy(booking_id, current_user)}


@router.post("/{booking_id}/payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    booking_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    payments: PaymentService = Depends(get_payment_service),
):
    """Client secret of the booking's card authorization, created on first call"""
    return {"client_secret": payments.create_or_reuse(booking_id, current_user)}


@router.post("/{booking_id}/confirm-payment", response_model=ConfirmPaymentResponse)
def confirm_payment(
    booking_id: UUID,
    request: ConfirmPaymentRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Called by the checkout page once the card authorization went through"""
    changed = service.confirm_payment(booking_id, request.payment_intent)
    return {"success": True, "already_confirmed": not changed}


@router.post("/{booking_id}/capture", response_model=CaptureResponse)
def capture_payment(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    captured = service.capture_payment(booking_id, actor=current_user)
    return {"success": True, "already_captured": not captured}


@router.post("/{booking_id}/resend-confirmation", response_model=MessageResponse)
def resend_confirmation(
    booking_id: UUID,
    current_user: User = Depends(get_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Send the confirmation email of a confirmed booking again (admin only)"""
    capability = issue_admin_capability(f"confirmation resent by {current_user.email}")
    service.resend_confirmation(booking_id, capability)
    return {"success": True, "message": "Confirmation email sent"}


@router.post("/{booking_id}/sync-stripe", response_model=SyncResponse)
def sync_stripe(
    booking_id: UUID,
    current_user: User = Depends(get_admin),
    service: BookingService = Depends(get_booking_service),
):
    """
    Confirm a booking whose payment was settled in Stripe outside the booking flow (admin only)
    """
    capability = issue_admin_capability(f"stripe sync run by {current_user.email}")
    return service.sync_with_processor(booking_id, capability)

@router.post("/{booking_id}/cancel", response_model=StatusResponse)
def cancel_booking(
    booking_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    access_token: Optional[str] = Header(None, alias=ACCESS_TOKEN_HEADER),
    service: BookingService = Depends(get_booking_service),
    db: Session = Depends(get_db),
):
    """Cancel before confirmation; guests authenticate with their magic-link token header"""
    guest_email = None
    if current_user is None:
        if not access_token:
            raise Forbidden("Forbidden")
        access = AccessTokenService(db).validate(access_token)
        if access.booking_id != booking_id:
            raise Forbidden("Token does not grant access to this booking")
        guest_email = access.email

    return {
        "success": True,
        "status": service.cancel_booking(booking_id, actor=current_user, guest_email=guest_email),
    }


@router.post("/{booking_id}/access-token", response_model=AccessTokenResponse)
def create_access_token(
    booking_id: UUID,
    request: AccessTokenRequest,
    db: Session = Depends(get_db),
):
    """Mint a magic-link token for the booking's guest email"""
    if not request.email:
        raise ValidationFailed("Email is required")

    issued = AccessTokenService(db).issue(
        booking_id,
        request.email,
        expires_in_days=request.expires_in_days,
        single_use=request.single_use,
    )
    return {"token": issued.raw_token, "expires_at": issued.expires_at}
