"""
Booking Service
Booking lifecycle: creation, gym decisions, payment confirmation, capture,
cancellation and completion
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from fightcamp.config import settings
from fightcamp.dependencies.auth import AdminCapability
from fightcamp.exceptions import (
    Conflict,
    Forbidden,
    NotFound,
    PaymentIntentMismatch,
    UpstreamFailure,
    ValidationFailed,
)
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.models.gym import BookingMode, Gym, Package, VerificationStatus, GymStatus
from fightcamp.models.user import User, UserRole
from fightcamp.schemas.booking import BookingCreate
from fightcamp.services import booking_state
from fightcamp.services.access_token_service import AccessTokenService
from fightcamp.services.booking_state import BookingWithGym
from fightcamp.services.notification_service import NotificationService
from fightcamp.services.payment_service import PAYABLE_STATUSES, PaymentService
from fightcamp.services.reference_service import allocate_reference, generate_pin, reference_in_use
from fightcamp.services.stripe_service import SUCCEEDED

logger = logging.getLogger(__name__)

ALREADY_AUTHORIZED = frozenset({BookingStatus.PENDING_CONFIRMATION, BookingStatus.CONFIRMED})


@dataclass
class CreatedBooking:
    booking_id: UUID
    booking_reference: str
    booking_pin: str
    status: BookingStatus


def payment_link(booking_id: UUID) -> str:
    return f"{settings.PUBLIC_BASE_URL}/bookings/{booking_id}/payment"


def magic_link(raw_token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL}/bookings/access/{raw_token}"


def authorize_gym_actor(actor: User, gym: Gym) -> None:
    """Owner of the gym or platform admin, nobody else"""
    if actor.role != UserRole.ADMIN and gym.owner_id != actor.id:
        raise Forbidden("Forbidden")


class BookingService:
    """Owns the booking status field; every change goes through booking_state.transition"""

    def __init__(self, db: Session, payments: PaymentService, notifier: NotificationService):
        self.db = db
        self.payments = payments
        self.notifier = notifier
        self.tokens = AccessTokenService(db)

    def notify_safely(self, description: str, send: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Run a notification; errors are logged and never reach the caller"""
        try:
            send(*args, **kwargs)
        except Exception as e:
            logger.error(f"Error sending {description}: {str(e)}", exc_info=True)
            self.db.rollback()

    # Creation

    def create_booking(self, data: BookingCreate, user: Optional[User] = None) -> CreatedBooking:
        """
        Create a booking in the initial status its package's booking mode asks for

        Raises:
            ValidationFailed: missing fields, incomplete guest identity, gym not bookable
            NotFound: gym does not exist
        """
        missing = [
            name
            for name in ("gym_id", "start_date", "end_date", "discipline", "experience_level", "total_price")
            if getattr(data, name) in (None, "")
        ]
        if missing:
            raise ValidationFailed(f"Missing required fields: {', '.join(missing)}", missing_fields=missing)

        if user is None and not (data.guest_email and data.guest_phone and data.guest_name):
            raise ValidationFailed("Guest bookings require email, phone, and name")

        if data.end_date < data.start_date:
            raise ValidationFailed("end_date must not be before start_date")

        gym = self.db.query(Gym).filter(Gym.id == data.gym_id).first()
        if not gym:
            raise NotFound("Gym not found")
        if gym.verification_status == VerificationStatus.DRAFT:
            raise ValidationFailed("This gym is not yet verified and cannot accept bookings")
        if gym.status != GymStatus.APPROVED:
            raise ValidationFailed("Gym is not approved for bookings")

        booking_mode = BookingMode.REQUEST_TO_BOOK
        if data.package_id:
            package = self.db.query(Package).filter(Package.id == data.package_id).first()
            if package is None or package.gym_id != gym.id:
                raise ValidationFailed("Package does not belong to this gym")
            if package.booking_mode:
                booking_mode = BookingMode(package.booking_mode)

        platform_fee = data.platform_fee
        if platform_fee is None:
            platform_fee = round(data.total_price * settings.PLATFORM_COMMISSION_RATE, 2)

        now = datetime.utcnow()
        if booking_mode == BookingMode.REQUEST_TO_BOOK:
            initial_status, request_submitted_at = BookingStatus.PENDING, now
        else:
            initial_status, request_submitted_at = BookingStatus.PENDING_PAYMENT, None

        booking = Booking(
            user_id=user.id if user else None,
            gym_id=gym.id,
            package_id=data.package_id,
            package_variant_id=data.package_variant_id,
            start_date=data.start_date,
            end_date=data.end_date,
            discipline=data.discipline,
            experience_level=data.experience_level,
            notes=data.notes,
            total_price=data.total_price,
            platform_fee=platform_fee,
            status=initial_status,
            request_submitted_at=request_submitted_at,
            guest_email=data.guest_email.lower() if data.guest_email else None,
            guest_phone=data.guest_phone,
            guest_name=data.guest_name,
            booking_reference=allocate_reference(reference_in_use(self.db)),
            booking_pin=generate_pin(),
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Created booking {booking.booking_reference} ({booking.id}) as {initial_status.value}")
        return CreatedBooking(
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
            booking_pin=booking.booking_pin,
            status=initial_status,
        )

    # Gym decisions

    def accept_request(self, booking_id: UUID, actor: User) -> BookingStatus:
        """pending -> gym_confirmed, then tell the guest to pay"""
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        authorize_gym_actor(actor, record.gym)

        if record.status != BookingStatus.PENDING:
            raise Conflict(
                f"Cannot accept booking. Current status: {record.status.value}. "
                "Only pending bookings can be accepted.",
                current_status=record.status.value,
            )

        booking_state.transition(
            self.db,
            booking_id,
            expected=[BookingStatus.PENDING],
            to_status=BookingStatus.GYM_CONFIRMED,
            conflict_message="Cannot accept booking. Current status: {status}. Only pending bookings can be accepted.",
            gym_confirmed_at=datetime.utcnow(),
        )

        self.notify_safely(
            "acceptance email",
            self.notifier.send_request_accepted,
            record.booking,
            record.gym,
            payment_link(booking_id),
        )
        return BookingStatus.GYM_CONFIRMED

    def decline_request(self, booking_id: UUID, actor: User, reason: Optional[str] = None) -> BookingStatus:
        """pending -> declined, then tell the guest why"""
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        authorize_gym_actor(actor, record.gym)

        if record.status != BookingStatus.PENDING:
            raise Conflict(
                f"Cannot decline booking. Current status: {record.status.value}. "
                "Only pending bookings can be declined.",
                current_status=record.status.value,
            )

        booking_state.transition(
            self.db,
            booking_id,
            expected=[BookingStatus.PENDING],
            to_status=BookingStatus.DECLINED,
            conflict_message="Cannot decline booking. Current status: {status}. Only pending bookings can be declined.",
            decline_reason=reason,
        )

        self.notify_safely(
            "decline email",
            self.notifier.send_request_declined,
            record.booking,
            record.gym,
            reason,
        )
        return BookingStatus.DECLINED

    def decline_legacy(self, booking_id: UUID, actor: User) -> BookingStatus:
        """
        awaiting_approval -> declined (legacy flow, payment already authorized)

        The held authorization is released before the status flips; if Stripe
        fails the booking stays as it was.
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        if actor.role != UserRole.OWNER or record.gym.owner_id != actor.id:
            raise Forbidden("Forbidden")

        if record.status != BookingStatus.AWAITING_APPROVAL:
            raise Conflict("Invalid booking status", current_status=record.status.value)

        self.payments.cancel_authorization(record.booking)

        booking_state.transition(
            self.db,
            booking_id,
            expected=[BookingStatus.AWAITING_APPROVAL],
            to_status=BookingStatus.DECLINED,
            conflict_message="Invalid booking status",
        )
        return BookingStatus.DECLINED

    # Payment

    def confirm_payment(self, booking_id: UUID, payment_intent_id: str) -> bool:
        """
        Record that the guest's card was authorized: -> pending_confirmation

        Safe to repeat: a booking already pending_confirmation or confirmed is
        left alone.

        Returns:
            True if this call moved the booking, False for a repeat delivery

        Raises:
            NotFound: booking does not exist
            ValidationFailed: no payment intent given
            PaymentIntentMismatch: booking is tied to a different intent
            Conflict: booking can no longer take a payment
        """
        if not payment_intent_id:
            raise ValidationFailed("payment_intent is required")

        record = booking_state.load_booking_with_gym(self.db, booking_id)
        booking = record.booking

        if record.status in ALREADY_AUTHORIZED:
            logger.info(f"Booking {booking_id} already {record.status.value} - skipping notify")
            return False

        if booking.stripe_payment_intent_id and booking.stripe_payment_intent_id != payment_intent_id:
            logger.error(
                f"Payment intent mismatch for booking {booking_id}: "
                f"stored={booking.stripe_payment_intent_id} received={payment_intent_id}"
            )
            raise PaymentIntentMismatch("Invalid payment intent")

        booking_state.transition(
            self.db,
            booking_id,
            expected=[BookingStatus.PENDING, BookingStatus.PENDING_PAYMENT],
            to_status=BookingStatus.PENDING_CONFIRMATION,
            conflict_message="Cannot confirm payment. Current status: {status}.",
            stripe_payment_intent_id=payment_intent_id,
        )

        self.notify_safely("new booking alert", self.notifier.send_new_booking_alert, booking, record.gym)
        self.notify_safely("request received email", self._send_request_received, record)
        return True

    def _send_request_received(self, record: BookingWithGym) -> None:
        booking = record.booking
        link = None
        if booking.guest_email:
            issued = self.tokens.issue(booking.id, booking.guest_email)
            link = magic_link(issued.raw_token)
        self.notifier.send_request_received(booking, record.gym, link)

    def capture_payment(
        self,
        booking_id: UUID,
        actor: Optional[User] = None,
        capability: Optional[AdminCapability] = None,
    ) -> bool:
        """
        Settle a held authorization: -> confirmed, and email the guest

        Needs the gym owner, an admin, or an AdminCapability.
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        if capability is None:
            if actor is None:
                raise Forbidden("Forbidden")
            authorize_gym_actor(actor, record.gym)
        else:
            logger.info(f"Capturing booking {booking_id} under admin capability: {capability.reason}")

        if not self.payments.capture(record):
            return False

        self.notify_safely("booking confirmed email", self._send_confirmed, record)
        return True

    def mark_confirmed_by_processor(self, payment_intent_id: str, capability: AdminCapability) -> Optional[UUID]:
        """
        The processor reports the intent captured: -> confirmed

        Returns:
            The booking id, or None when no booking carries the intent
        """
        booking = self.db.query(Booking).filter(Booking.stripe_payment_intent_id == payment_intent_id).first()
        if booking is None:
            logger.error(f"Booking not found for payment intent {payment_intent_id}")
            return None

        record = booking_state.load_booking_with_gym(self.db, booking.id)
        if record.status == BookingStatus.CONFIRMED:
            logger.info(f"Booking {booking.id} already confirmed, skipping update")
            return booking.id

        if not booking_state.can_transition(record.status, BookingStatus.CONFIRMED):
            raise Conflict(
                f"Cannot confirm booking. Current status: {record.status.value}.",
                current_status=record.status.value,
            )

        logger.info(f"Confirming booking {booking.id} from processor event ({capability.reason})")
        booking_state.transition(
            self.db,
            booking.id,
            expected=[record.status],
            to_status=BookingStatus.CONFIRMED,
            conflict_message="Cannot confirm booking. Current status: {status}.",
            confirmed_at=datetime.utcnow(),
        )
        self.notify_safely("booking confirmed email", self._send_confirmed, record)
        return booking.id

    def _send_confirmed(self, record: BookingWithGym) -> Dict[str, Any]:
        booking = record.booking
        link = None
        if booking.guest_email:
            issued = self.tokens.issue(booking.id, booking.guest_email)
            link = magic_link(issued.raw_token)
        return self.notifier.send_booking_confirmed(booking, record.gym, link)

    # Admin reconciliation

    def resend_confirmation(self, booking_id: UUID, capability: AdminCapability) -> None:
        """
        Email the booking confirmation again, with a fresh magic link

        Raises:
            ValidationFailed: booking is not confirmed or has no guest email
            UpstreamFailure: the email could not be sent
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        if record.status != BookingStatus.CONFIRMED:
            raise ValidationFailed("Booking must be confirmed to resend confirmation email")
        if not record.booking.guest_email:
            raise ValidationFailed("No guest email found for this booking")

        logger.info(f"Resending confirmation for booking {booking_id} ({capability.reason})")
        result = self._send_confirmed(record)
        if not result.get("success"):
            raise UpstreamFailure("Failed to resend confirmation email")

    def sync_with_processor(self, booking_id: UUID, capability: AdminCapability) -> Dict[str, Any]:
        """
        Confirm a booking whose payment Stripe reports settled, e.g. one
        captured by hand in the dashboard

        A booking still in a payable status passes through
        pending_confirmation on the way, so every step is a legal transition.

        Returns:
            synced=False with both statuses when Stripe has not settled the
            payment, synced=True otherwise

        Raises:
            ValidationFailed: Stripe has no intent for the booking
            Conflict: booking is declined, cancelled or completed
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        intent = self.payments.locate_intent(record.booking)

        if intent.status != SUCCEEDED:
            logger.info(f"Booking {booking_id} not synced: intent {intent.id} is {intent.status}")
            return {
                "synced": False,
                "stripe_status": intent.status,
                "booking_status": record.status.value,
                "payment_intent_id": intent.id,
            }

        if record.status == BookingStatus.CONFIRMED:
            return {"synced": True, "already_confirmed": True, "payment_intent_id": intent.id}

        status = record.status
        if status not in PAYABLE_STATUSES and not booking_state.can_transition(status, BookingStatus.CONFIRMED):
            raise Conflict(
                f"Cannot confirm booking. Current status: {status.value}.",
                current_status=status.value,
            )

        logger.info(f"Syncing booking {booking_id} with settled intent {intent.id} ({capability.reason})")
        if status in PAYABLE_STATUSES:
            booking_state.transition(
                self.db,
                booking_id,
                expected=[status],
                to_status=BookingStatus.PENDING_CONFIRMATION,
                conflict_message="Cannot confirm booking. Current status: {status}.",
                stripe_payment_intent_id=intent.id,
            )
            status = BookingStatus.PENDING_CONFIRMATION

        booking_state.transition(
            self.db,
            booking_id,
            expected=[status],
            to_status=BookingStatus.CONFIRMED,
            conflict_message="Cannot confirm booking. Current status: {status}.",
            confirmed_at=datetime.utcnow(),
            stripe_payment_intent_id=intent.id,
        )
        self.notify_safely("booking confirmed email", self._send_confirmed, record)
        return {"synced": True, "status_updated": True, "payment_intent_id": intent.id}

    # Cancellation and completion

    def cancel_booking(
        self,
        booking_id: UUID,
        actor: Optional[User] = None,
        guest_email: Optional[str] = None,
    ) -> BookingStatus:
        """
        Cancel a booking that is not yet confirmed; held funds are released first

        Allowed for the gym owner, an admin, the booking's user, or a guest
        holding a valid access token for the booking (guest_email).
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        booking = record.booking

        allowed = False
        if actor is not None:
            allowed = (
                actor.role == UserRole.ADMIN or record.gym.owner_id == actor.id or booking.user_id == actor.id
            )
        elif guest_email is not None:
            allowed = bool(booking.guest_email) and booking.guest_email.lower() == guest_email.lower()
        if not allowed:
            raise Forbidden("Forbidden")

        if record.status not in booking_state.CANCELLABLE:
            raise Conflict(
                f"Cannot cancel booking. Current status: {record.status.value}.",
                current_status=record.status.value,
            )

        self.payments.cancel_authorization(booking)

        booking_state.transition(
            self.db,
            booking_id,
            expected=[record.status],
            to_status=BookingStatus.CANCELLED,
            conflict_message="Cannot cancel booking. Current status: {status}.",
            cancelled_at=datetime.utcnow(),
        )
        self.notify_safely("cancellation email", self.notifier.send_booking_cancelled, booking, record.gym)
        return BookingStatus.CANCELLED

    def complete_past_stays(self, capability: AdminCapability, today: Optional[date] = None) -> List[UUID]:
        """Move confirmed bookings whose stay has ended to completed"""
        today = today or datetime.utcnow().date()
        due = (
            self.db.query(Booking.id)
            .filter(Booking.status == BookingStatus.CONFIRMED, Booking.end_date < today)
            .all()
        )

        completed = []
        for (booking_id,) in due:
            try:
                booking_state.transition(
                    self.db,
                    booking_id,
                    expected=[BookingStatus.CONFIRMED],
                    to_status=BookingStatus.COMPLETED,
                    completed_at=datetime.utcnow(),
                )
            except Conflict as e:
                logger.info(f"Skipping completion of booking {booking_id}: {e.message}")
                continue
            completed.append(booking_id)

        logger.info(f"Completed {len(completed)} bookings ({capability.reason})")
        return completed
