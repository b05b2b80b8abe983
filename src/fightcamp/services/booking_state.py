"""
Booking State Machine
Legal status transitions and the conditional write that applies them
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from fightcamp.exceptions import Conflict, NotFound
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.models.gym import Gym

logger = logging.getLogger(__name__)

S = BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    S.PENDING: frozenset({S.GYM_CONFIRMED, S.DECLINED, S.PENDING_PAYMENT, S.PENDING_CONFIRMATION, S.CANCELLED}),
    # pending_payment -> pending_payment: a replacement intent was attached
    S.PENDING_PAYMENT: frozenset({S.PENDING_PAYMENT, S.PENDING_CONFIRMATION, S.CANCELLED}),
    S.PENDING_CONFIRMATION: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.GYM_CONFIRMED: frozenset({S.CONFIRMED, S.CANCELLED}),
    # Legacy rows only; nothing transitions into awaiting_approval any more
    S.AWAITING_APPROVAL: frozenset({S.DECLINED, S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.COMPLETED}),
    S.DECLINED: frozenset(),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Statuses from which a booking may still be cancelled without a refund
CANCELLABLE = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if S.CANCELLED in targets)


def can_transition(from_status: BookingStatus, to_status: BookingStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(BookingStatus(from_status), frozenset())


def is_terminal(status: BookingStatus) -> bool:
    return not ALLOWED_TRANSITIONS.get(BookingStatus(status))


@dataclass
class BookingWithGym:
    """A booking and its gym, read together in one query"""

    booking: Booking
    gym: Gym

    @property
    def status(self) -> BookingStatus:
        return BookingStatus(self.booking.status)


def load_booking_with_gym(db: Session, booking_id: UUID) -> BookingWithGym:
    """
    Fresh read of a booking joined with its gym

    populate_existing() overwrites anything the session cached, so status
    checks always see what is in the database now.

    Raises:
        NotFound: no such booking
    """
    row = (
        db.query(Booking, Gym)
        .join(Gym, Booking.gym_id == Gym.id)
        .filter(Booking.id == booking_id)
        .populate_existing()
        .first()
    )
    if row is None:
        raise NotFound("Booking not found")
    booking, gym = row
    return BookingWithGym(booking=booking, gym=gym)


def current_status(db: Session, booking_id: UUID) -> Optional[BookingStatus]:
    status = db.query(Booking.status).filter(Booking.id == booking_id).scalar()
    return BookingStatus(status) if status is not None else None


def transition(
    db: Session,
    booking_id: UUID,
    expected: Iterable[BookingStatus],
    to_status: BookingStatus,
    conflict_message: Optional[str] = None,
    **fields: Any,
) -> None:
    """
    Move a booking to to_status if, and only if, it is still in one of the
    expected statuses.

    Issues a single UPDATE ... WHERE id = :id AND status IN (:expected) and
    treats a zero row count as a lost race.

    Args:
        db: Database session
        booking_id: Booking to move
        expected: Statuses the caller validated against
        to_status: Target status
        conflict_message: Error text when the precondition no longer holds;
            "{status}" is replaced with the status found
        **fields: Extra columns written in the same statement

    Raises:
        ValueError: expected contains a status that cannot reach to_status
        Conflict: the booking left the expected statuses
    """
    expected = frozenset(BookingStatus(s) for s in expected)
    illegal = [s.value for s in expected if not can_transition(s, to_status)]
    if illegal:
        raise ValueError(f"Illegal transition {illegal} -> {to_status.value}")

    values = {getattr(Booking, name): value for name, value in fields.items()}
    values[Booking.status] = to_status
    values[Booking.updated_at] = datetime.utcnow()

    updated = (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.status.in_(list(expected)))
        .update(values, synchronize_session=False)
    )
    db.commit()

    if updated != 1:
        found = current_status(db, booking_id)
        if found is None:
            raise NotFound("Booking not found")
        message = (conflict_message or "Cannot update booking. Current status: {status}.").format(status=found.value)
        logger.info(f"Transition of booking {booking_id} to {to_status.value} rejected: status is {found.value}")
        raise Conflict(message, current_status=found.value)

    logger.info(f"Booking {booking_id} -> {to_status.value}")
