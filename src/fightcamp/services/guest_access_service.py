"""
Guest Access Service
Self-service for guests without an account: reference + PIN lookup and
magic-link recovery by email + reference
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from fightcamp.exceptions import InvalidPin, NotFound
from fightcamp.models.booking import Booking
from fightcamp.services.access_token_service import AccessTokenService
from fightcamp.services.booking_service import magic_link
from fightcamp.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

ACCESS_LINK_SENT_MESSAGE = "If a booking exists with that email and reference, a magic link has been sent."


class GuestAccessService:
    def __init__(self, db: Session, notifier: NotificationService):
        self.db = db
        self.notifier = notifier
        self.tokens = AccessTokenService(db)

    def lookup_by_pin(self, booking_reference: str, pin: str) -> Booking:
        """
        Find a booking by its reference and PIN

        The caller renders it without the PIN.

        Raises:
            NotFound: unknown reference
            InvalidPin: reference exists but the PIN is wrong
        """
        reference = booking_reference.strip().upper()
        booking = (
            self.db.query(Booking)
            .options(joinedload(Booking.gym), joinedload(Booking.package), joinedload(Booking.variant))
            .filter(Booking.booking_reference == reference)
            .first()
        )
        if not booking:
            raise NotFound("Booking not found. Please check your booking reference.")

        if booking.booking_pin != pin.strip():
            logger.info(f"Wrong PIN for booking {reference}")
            raise InvalidPin("Invalid PIN. Please check your booking confirmation email.")

        return booking

    def request_access_link(self, email: str, booking_reference: str) -> str:
        """
        Email a fresh magic link when email and reference match a booking

        Always returns the same message, match or not.
        """
        reference = booking_reference.strip().upper()
        booking: Optional[Booking] = (
            self.db.query(Booking)
            .filter(
                Booking.booking_reference == reference,
                func.lower(Booking.guest_email) == email.strip().lower(),
            )
            .first()
        )

        if booking is None:
            logger.info(f"Access link requested for unknown booking {reference}")
            return ACCESS_LINK_SENT_MESSAGE

        try:
            issued = self.tokens.issue(booking.id, email.strip())
            self.notifier.send_access_link(booking, booking.gym, magic_link(issued.raw_token))
        except Exception as e:
            logger.error(f"Error sending access link for booking {booking.id}: {str(e)}", exc_info=True)
            self.db.rollback()

        return ACCESS_LINK_SENT_MESSAGE
