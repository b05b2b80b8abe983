"""
Access Token Service
Issues and validates magic-link tokens for guest booking access
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from fightcamp.config import settings
from fightcamp.exceptions import Forbidden, InvalidToken, NotFound, TokenAlreadyUsed, TokenExpired
from fightcamp.models.access_token import BookingAccessToken
from fightcamp.models.booking import Booking

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 32
TOKEN_BYTES = 32


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


@dataclass
class IssuedToken:
    raw_token: str
    expires_at: datetime


@dataclass
class BookingAccess:
    booking_id: UUID
    email: str
    expires_at: datetime


class AccessTokenService:
    """Mints and redeems hashed, expiring booking access tokens"""

    def __init__(self, db: Session):
        self.db = db

    def issue(
        self,
        booking_id: UUID,
        email: str,
        expires_in_days: Optional[int] = None,
        single_use: bool = False,
    ) -> IssuedToken:
        """
        Mint a token for one booking

        The raw token is returned here and nowhere else; only its SHA-256
        is persisted.

        Raises:
            NotFound: booking does not exist
            Forbidden: email does not match the booking's guest email
        """
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFound("Booking not found")

        if booking.guest_email and booking.guest_email.lower() != email.lower():
            logger.warning(f"Refused access token for booking {booking_id}: email does not match")
            raise Forbidden("Email does not match booking")

        days = expires_in_days if expires_in_days is not None else settings.ACCESS_TOKEN_DEFAULT_DAYS
        raw_token = secrets.token_hex(TOKEN_BYTES)
        expires_at = datetime.utcnow() + timedelta(days=days)

        record = BookingAccessToken(
            booking_id=booking.id,
            token_hash=hash_token(raw_token),
            email=email.lower(),
            expires_at=expires_at,
            is_single_use=single_use,
        )
        self.db.add(record)
        self.db.commit()

        logger.info(f"Issued access token for booking {booking.id} (expires {expires_at.isoformat()})")
        return IssuedToken(raw_token=raw_token, expires_at=expires_at)

    def validate(self, raw_token: str, now: Optional[datetime] = None) -> BookingAccess:
        """
        Resolve a raw token to the booking it grants access to

        Raises:
            InvalidToken: obviously malformed input
            NotFound: no token with that hash
            TokenExpired: past expires_at
            TokenAlreadyUsed: single-use token already redeemed
        """
        if not raw_token or len(raw_token) < MIN_TOKEN_LENGTH:
            raise InvalidToken("Invalid token")

        now = now or datetime.utcnow()
        record = (
            self.db.query(BookingAccessToken).filter(BookingAccessToken.token_hash == hash_token(raw_token)).first()
        )
        if not record:
            raise NotFound("Invalid or expired token")

        if now > record.expires_at:
            raise TokenExpired("Token has expired")

        if record.is_single_use:
            if record.used_at is not None:
                raise TokenAlreadyUsed("Token has already been used")
            if not self.mark_used(record.id, now):
                raise TokenAlreadyUsed("Token has already been used")

        return BookingAccess(booking_id=record.booking_id, email=record.email, expires_at=record.expires_at)

    def mark_used(self, token_id: UUID, now: datetime) -> bool:
        """
        Stamp used_at only if nobody else did first.

        Returns:
            True if this call consumed the token
        """
        updated = (
            self.db.query(BookingAccessToken)
            .filter(BookingAccessToken.id == token_id, BookingAccessToken.used_at.is_(None))
            .update({BookingAccessToken.used_at: now}, synchronize_session=False)
        )
        self.db.commit()
        return updated == 1
