"""
Payment Service
Ties at most one held card authorization to each booking
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import stripe
from sqlalchemy.orm import Session

from fightcamp.exceptions import AlreadyProcessed, Conflict, Forbidden, ValidationFailed
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.models.user import User
from fightcamp.services import booking_state
from fightcamp.services.booking_state import BookingWithGym
from fightcamp.services.stripe_service import CANCELED, SUCCEEDED, StripeService

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.PENDING_PAYMENT})
CAPTURABLE_STATUSES = frozenset(
    {BookingStatus.PENDING_CONFIRMATION, BookingStatus.GYM_CONFIRMED, BookingStatus.AWAITING_APPROVAL}
)


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class PaymentService:
    """
    Creates, reuses, cancels and captures the payment authorization of a booking.

    Authorizations use manual capture: funds are held while the gym decides
    and only move when the booking is captured.
    """

    def __init__(self, db: Session, stripe_service: StripeService):
        self.db = db
        self.stripe = stripe_service

    def create_or_reuse(self, booking_id: UUID, actor: Optional[User] = None) -> str:
        """
        Return the client secret of the booking's authorization, creating it if needed

        Repeated calls (page reloads, double clicks) return the same secret as
        long as the stored intent is still usable.

        Raises:
            NotFound: booking does not exist
            Forbidden: signed-in user is not the booking's user
            AlreadyProcessed: booking is past the payable statuses
            UpstreamFailure: Stripe missing or failing
        """
        record = booking_state.load_booking_with_gym(self.db, booking_id)
        booking, gym = record.booking, record.gym

        if actor is not None and booking.user_id is not None and booking.user_id != actor.id:
            raise Forbidden("Unauthorized")

        if record.status not in PAYABLE_STATUSES:
            raise AlreadyProcessed(record.status.value)

        self.stripe.ensure_configured()

        if booking.stripe_payment_intent_id:
            try:
                existing = self.stripe.retrieve_intent(booking.stripe_payment_intent_id)
                if existing.client_secret and existing.status != CANCELED:
                    return existing.client_secret
            except stripe.StripeError as e:
                logger.warning(
                    f"Failed to retrieve payment intent {booking.stripe_payment_intent_id} "
                    f"for booking {booking.id}, creating a new one: {str(e)}"
                )

        intent = self.stripe.create_authorization(
            amount=to_minor_units(booking.total_price),
            currency=gym.currency,
            metadata={
                "booking_id": str(booking.id),
                "gym_id": str(booking.gym_id),
                "booking_reference": booking.booking_reference or "",
            },
            idempotency_key=f"booking-{booking.id}-{booking.stripe_payment_intent_id or 'first'}",
        )

        # Forcing pending_payment keeps later loads from stalling on a
        # pending booking that already has an intent. Any payable status is
        # accepted here: a concurrent call may have attached its intent first.
        booking_state.transition(
            self.db,
            booking.id,
            expected=PAYABLE_STATUSES,
            to_status=BookingStatus.PENDING_PAYMENT,
            conflict_message="Booking already processed. Current status: {status}.",
            stripe_payment_intent_id=intent.id,
        )
        logger.info(f"Created payment intent {intent.id} for booking {booking.id}")
        return intent.client_secret

    def locate_intent(self, booking: Booking) -> Any:
        """
        The Stripe intent that best describes what was paid for a booking

        A succeeded intent wins, whether it is the stored one or one found by
        its booking metadata. Otherwise the stored intent, then the newest match.

        Raises:
            ValidationFailed: Stripe has no intent for the booking
            UpstreamFailure: Stripe missing or failing
        """
        self.stripe.ensure_configured()

        stored = None
        if booking.stripe_payment_intent_id:
            try:
                stored = self.stripe.retrieve_intent(booking.stripe_payment_intent_id)
            except stripe.StripeError as e:
                logger.warning(f"Failed to retrieve payment intent {booking.stripe_payment_intent_id}: {str(e)}")
            if stored is not None and stored.status == SUCCEEDED:
                return stored

        candidates = self.stripe.search_booking_intents(str(booking.id), booking.booking_reference)
        for intent in candidates:
            if intent.status == SUCCEEDED:
                return intent

        if stored is not None:
            return stored
        if candidates:
            return candidates[0]
        raise ValidationFailed("No payment intent found for this booking")

    def cancel_authorization(self, booking: Booking) -> None:
        """Release the held funds of a booking, if it has any"""
        if not booking.stripe_payment_intent_id:
            return
        self.stripe.cancel_intent(booking.stripe_payment_intent_id)
        logger.info(f"Canceled payment intent {booking.stripe_payment_intent_id} for booking {booking.id}")

    def capture(self, record: BookingWithGym) -> bool:
        """
        Capture the held funds and mark the booking confirmed

        The caller has already authorized the actor.

        Returns:
            False when the booking was already confirmed (nothing done)

        Raises:
            Conflict: booking is not in a capturable status
            ValidationFailed: booking has no payment intent
        """
        booking = record.booking
        if record.status == BookingStatus.CONFIRMED:
            logger.info(f"Booking {booking.id} already confirmed, nothing to capture")
            return False

        if record.status not in CAPTURABLE_STATUSES:
            raise Conflict("Invalid booking status", current_status=record.status.value)

        if not booking.stripe_payment_intent_id:
            raise ValidationFailed("Payment intent not found")

        self.stripe.capture_intent(booking.stripe_payment_intent_id)

        booking_state.transition(
            self.db,
            booking.id,
            expected=[record.status],
            to_status=BookingStatus.CONFIRMED,
            conflict_message="Cannot confirm booking. Current status: {status}.",
            confirmed_at=datetime.utcnow(),
        )
        return True
