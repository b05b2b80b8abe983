"""
Service Dependencies
Builds the per-request services so routes (and tests) can swap them
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fightcamp.database import get_db
from fightcamp.services.booking_service import BookingService
from fightcamp.services.exchange_rates import ExchangeRateCache
from fightcamp.services.guest_access_service import GuestAccessService
from fightcamp.services.notification_service import NotificationService
from fightcamp.services.payment_service import PaymentService
from fightcamp.services.stripe_service import StripeService


def get_stripe_service() -> StripeService:
    return StripeService()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_payment_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> PaymentService:
    return PaymentService(db, stripe_service)


def get_booking_service(
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> BookingService:
    return BookingService(db, payments, notifier)


def get_guest_access_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> GuestAccessService:
    return GuestAccessService(db, notifier)


def get_exchange_rate_cache(request: Request) -> ExchangeRateCache:
    return request.app.state.exchange_rates
