"""
Booking Reference Service
Generates the human-shareable booking reference and PIN
"""

import logging
import secrets
from typing import Callable

from sqlalchemy.orm import Session

from fightcamp.models.booking import Booking

logger = logging.getLogger(__name__)

# 32 symbols; 0/O and 1/I are left out so references survive being read aloud
REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERENCE_PREFIX = "BK-"
REFERENCE_LENGTH = 3
MAX_REFERENCE_ATTEMPTS = 10


def generate_reference() -> str:
    """BK- followed by three symbols drawn from a cryptographically strong source"""
    # len(REFERENCE_ALPHABET) divides 256, so byte % 32 stays uniform
    random_bytes = secrets.token_bytes(REFERENCE_LENGTH)
    return REFERENCE_PREFIX + "".join(REFERENCE_ALPHABET[b % len(REFERENCE_ALPHABET)] for b in random_bytes)


def generate_pin() -> str:
    """Six decimal digits, 100000-999999. Not unique, not a secret on its own."""
    return str(100000 + secrets.randbelow(900000))


def allocate_reference(
    exists: Callable[[str], bool],
    generator: Callable[[], str] = generate_reference,
    max_attempts: int = MAX_REFERENCE_ATTEMPTS,
) -> str:
    """
    Pick a reference that is not in use yet

    Retries up to max_attempts times; after that the last candidate is
    accepted even if it collides.

    Args:
        exists: Returns True when a booking already carries the reference
        generator: Candidate source
        max_attempts: Retry cap

    Returns:
        The reference to store
    """
    reference = generator()
    attempts = 0
    while attempts < max_attempts:
        if not exists(reference):
            return reference
        reference = generator()
        attempts += 1

    logger.warning(f"Could not find a free booking reference after {max_attempts} attempts, using {reference}")
    return reference


def reference_in_use(db: Session) -> Callable[[str], bool]:
    def exists(reference: str) -> bool:
        return db.query(Booking.id).filter(Booking.booking_reference == reference).first() is not None

    return exists
