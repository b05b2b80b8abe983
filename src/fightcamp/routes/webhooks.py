"""
Stripe Webhook Routes
Payment processor events that drive the booking lifecycle
"""

import logging
from typing import Any, Dict
from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request

from fightcamp.config import settings
from fightcamp.dependencies.auth import issue_admin_capability
from fightcamp.dependencies.services import get_booking_service, get_stripe_service
from fightcamp.exceptions import BookingError
from fightcamp.models.booking import Booking
from fightcamp.services.booking_service import BookingService
from fightcamp.services.stripe_service import StripeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

AUTHORIZED = "payment_intent.amount_capturable_updated"
SUCCEEDED = "payment_intent.succeeded"
CANCELED = "payment_intent.canceled"


def handle_authorized(service: BookingService, intent: Dict[str, Any]) -> Dict[str, Any]:
    """Card authorized: same transition as the checkout page's confirm-payment call"""
    booking_id = (intent.get("metadata") or {}).get("booking_id")
    if not booking_id:
        booking = service.db.query(Booking).filter(Booking.stripe_payment_intent_id == intent["id"]).first()
        booking_id = booking.id if booking else None
    if not booking_id:
        logger.error(f"Booking not found for payment intent {intent['id']}")
        return {"received": True, "booking_not_found": True}

    try:
        booking_id = UUID(str(booking_id))
    except ValueError:
        logger.error(f"Payment intent {intent['id']} carries malformed booking_id {booking_id!r}")
        return {"received": True, "booking_not_found": True}

    changed = service.confirm_payment(booking_id, intent["id"])
    return {"received": True, "already_confirmed": not changed}


def handle_succeeded(service: BookingService, intent: Dict[str, Any]) -> Dict[str, Any]:
    capability = issue_admin_capability(f"stripe webhook {SUCCEEDED}")
    booking_id = service.mark_confirmed_by_processor(intent["id"], capability)
    if booking_id is None:
        return {"received": True, "booking_not_found": True}
    return {"received": True, "booking_id": str(booking_id)}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    service: BookingService = Depends(get_booking_service),
):
    """
    Handle Stripe webhook events

    This endpoint has no authentication; the signature is the credential.
    Events about unknown bookings are acknowledged so Stripe stops retrying.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        logger.warning("Webhook received without signature")
        raise HTTPException(status_code=400, detail="Missing signature")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    try:
        event = stripe_service.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.error(f"Webhook signature verification failed: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid signature")

    event_type = event["type"]
    intent = event["data"]["object"]
    logger.info(f"Webhook received: {event_type} for {intent.get('id')}")

    try:
        if event_type == AUTHORIZED:
            return handle_authorized(service, intent)
        if event_type == SUCCEEDED:
            return handle_succeeded(service, intent)
    except BookingError as e:
        # Acknowledge anyway; a retry would hit the same state
        logger.warning(f"Webhook {event_type} for {intent.get('id')} not applied: {e.message}")
        return {"received": True, "applied": False, "error": e.message}

    if event_type == CANCELED:
        logger.info(f"Payment intent {intent.get('id')} canceled")
    else:
        logger.info(f"Unhandled webhook event type: {event_type}")
    return {"received": True}
