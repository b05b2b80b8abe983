"""
Stripe Service
Thin wrapper over the Stripe SDK for card authorizations held with manual capture
"""

import logging
from typing import Any, Dict, List, Optional

import stripe

from fightcamp.config import is_usable_stripe_key, settings
from fightcamp.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

CANCELED = "canceled"
SUCCEEDED = "succeeded"


class StripeService:
    """
    Payment processor contract used by the booking system:
    create / retrieve / cancel / capture an authorization, verify webhooks.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.configured = is_usable_stripe_key(self.api_key)
        if self.configured:
            stripe.api_key = self.api_key
            stripe.max_network_retries = 1
            if self.api_key.startswith("sk_live_"):
                logger.warning("Stripe is running with LIVE keys")
        else:
            logger.warning("STRIPE_SECRET_KEY is not configured - payments are disabled")

    def ensure_configured(self) -> None:
        if not self.configured:
            logger.error("Stripe is not configured. Set STRIPE_SECRET_KEY in the environment.")
            raise UpstreamFailure("Payment system is not configured. Please contact support.")

    def retrieve_intent(self, payment_intent_id: str) -> Any:
        """Raises stripe.StripeError if the intent cannot be loaded"""
        self.ensure_configured()
        return stripe.PaymentIntent.retrieve(payment_intent_id)

    def create_authorization(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Any:
        """
        Create a card PaymentIntent that only holds the funds

        Args:
            amount: Minor units (cents)
            currency: ISO currency code
            metadata: Reconciliation tags (booking/gym ids)
            idempotency_key: Forwarded to Stripe so retried requests reuse the intent
        """
        self.ensure_configured()
        try:
            return stripe.PaymentIntent.create(
                amount=amount,
                currency=currency.lower(),
                capture_method="manual",
                payment_method_types=["card"],
                metadata=metadata,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {str(e)}")
            raise UpstreamFailure("Failed to create payment intent")

    def cancel_intent(self, payment_intent_id: str) -> Any:
        """Release an authorization; canceling an already-canceled intent is a no-op"""
        self.ensure_configured()
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
            if intent.status == CANCELED:
                logger.info(f"Payment intent {payment_intent_id} already canceled")
                return intent
            return stripe.PaymentIntent.cancel(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe error canceling payment intent {payment_intent_id}: {str(e)}")
            raise UpstreamFailure("Failed to cancel payment authorization")

    def capture_intent(self, payment_intent_id: str) -> Any:
        """Capture held funds; an intent that already succeeded is returned as is"""
        self.ensure_configured()
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
            if intent.status == SUCCEEDED:
                logger.info(f"Payment intent {payment_intent_id} already captured")
                return intent
            return stripe.PaymentIntent.capture(payment_intent_id)
        except stripe.StripeError as e:
            if getattr(e, "code", None) == "payment_intent_already_captured":
                logger.info(f"Payment intent {payment_intent_id} was already captured")
                return stripe.PaymentIntent.retrieve(payment_intent_id)
            logger.error(f"Stripe error capturing payment intent {payment_intent_id}: {str(e)}")
            raise UpstreamFailure("Failed to capture payment")

    def search_booking_intents(self, booking_id: str, booking_reference: Optional[str] = None) -> List[Any]:
        """
        Intents tagged with this booking in their metadata, newest first

        Finds authorizations whose id was never stored on the booking, e.g.
        when payment was taken by hand in the Stripe dashboard.
        """
        self.ensure_configured()
        query = f"metadata['booking_id']:'{booking_id}'"
        if booking_reference:
            query += f" OR metadata['booking_reference']:'{booking_reference}'"
        try:
            result = stripe.PaymentIntent.search(query=query, limit=10)
        except stripe.StripeError as e:
            logger.error(f"Stripe error searching payment intents for booking {booking_id}: {str(e)}")
            raise UpstreamFailure("Failed to search payment intents")
        return sorted(result.data, key=lambda intent: intent.created, reverse=True)

    def construct_event(self, payload: bytes, signature: str, secret: str) -> Any:
        """Raises ValueError or stripe.SignatureVerificationError on a bad payload/signature"""
        return stripe.Webhook.construct_event(payload, signature, secret)
