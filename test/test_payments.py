"""
Tests for the payment intent coordinator
"""

from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from fightcamp.exceptions import AlreadyProcessed, Forbidden, UpstreamFailure
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.services.payment_service import PaymentService, to_minor_units
from fightcamp.services.stripe_service import StripeService

from conftest import TestingSessionLocal


def reload(db: Session, booking: Booking) -> Booking:
    db.expire_all()
    return db.query(Booking).filter(Booking.id == booking.id).one()


class TestCreateOrReuse:
    def test_first_call_creates_manual_capture_authorization(
        self, db: Session, payment_service: PaymentService, mock_stripe, make_booking, gym
    ):
        booking = make_booking(BookingStatus.PENDING, total_price=123.45)

        secret = payment_service.create_or_reuse(booking.id)

        assert secret == "pi_test_1_secret_test"
        kwargs = mock_stripe.create_authorization.call_args.kwargs
        assert kwargs["amount"] == 12345
        assert kwargs["currency"] == "THB"
        assert kwargs["metadata"]["booking_id"] == str(booking.id)
        assert kwargs["metadata"]["gym_id"] == str(gym.id)

        booking = reload(db, booking)
        assert booking.stripe_payment_intent_id == "pi_test_1"
        assert booking.status == BookingStatus.PENDING_PAYMENT

    def test_second_call_reuses_the_intent(
        self, db: Session, payment_service: PaymentService, mock_stripe, make_booking
    ):
        booking = make_booking(BookingStatus.PENDING_PAYMENT)

        first = payment_service.create_or_reuse(booking.id)
        intent_id = reload(db, booking).stripe_payment_intent_id
        second = payment_service.create_or_reuse(booking.id)

        assert first == second
        assert reload(db, booking).stripe_payment_intent_id == intent_id
        assert mock_stripe.create_authorization.call_count == 1

    def test_canceled_intent_is_replaced(
        self, db: Session, payment_service: PaymentService, mock_stripe, make_booking
    ):
        mock_stripe.intents["pi_old"] = SimpleNamespace(
            id="pi_old", client_secret="pi_old_secret_test", status="canceled"
        )
        booking = make_booking(BookingStatus.PENDING_PAYMENT, stripe_payment_intent_id="pi_old")

        secret = payment_service.create_or_reuse(booking.id)

        assert secret != "pi_old_secret_test"
        assert mock_stripe.create_authorization.call_args.kwargs["idempotency_key"] == f"booking-{booking.id}-pi_old"
        assert reload(db, booking).stripe_payment_intent_id != "pi_old"

    def test_unreadable_intent_is_replaced(
        self, db: Session, payment_service: PaymentService, mock_stripe, make_booking
    ):
        mock_stripe.retrieve_intent.side_effect = stripe.InvalidRequestError("No such payment_intent", "id")
        booking = make_booking(BookingStatus.PENDING_PAYMENT, stripe_payment_intent_id="pi_foreign")

        payment_service.create_or_reuse(booking.id)

        assert reload(db, booking).stripe_payment_intent_id == "pi_test_1"

    def test_concurrent_request_that_attached_an_intent_first(
        self, db: Session, payment_service: PaymentService, mock_stripe, make_booking
    ):
        booking = make_booking(BookingStatus.PENDING)
        create_authorization = mock_stripe.create_authorization.side_effect

        def other_request_wins_the_write(**kwargs):
            other = TestingSessionLocal()
            try:
                row = other.query(Booking).filter(Booking.id == booking.id).one()
                row.status = BookingStatus.PENDING_PAYMENT
                row.stripe_payment_intent_id = "pi_other"
                other.commit()
            finally:
                other.close()
            return create_authorization(**kwargs)

        mock_stripe.create_authorization.side_effect = other_request_wins_the_write

        secret = payment_service.create_or_reuse(booking.id)

        assert secret == "pi_test_1_secret_test"
        booking = reload(db, booking)
        assert booking.status == BookingStatus.PENDING_PAYMENT
        assert booking.stripe_payment_intent_id == "pi_test_1"

    @pytest.mark.parametrize(
        "status",
        [
            BookingStatus.GYM_CONFIRMED,
            BookingStatus.PENDING_CONFIRMATION,
            BookingStatus.CONFIRMED,
            BookingStatus.DECLINED,
            BookingStatus.CANCELLED,
        ],
    )
    def test_processed_booking_is_refused(
        self, payment_service: PaymentService, mock_stripe, make_booking, status
    ):
        booking = make_booking(status)

        with pytest.raises(AlreadyProcessed) as exc_info:
            payment_service.create_or_reuse(booking.id)

        assert exc_info.value.current_status == status.value
        mock_stripe.create_authorization.assert_not_called()

    def test_other_users_booking_is_forbidden(self, payment_service: PaymentService, make_booking, fighter, owner):
        booking = make_booking(BookingStatus.PENDING, user_id=fighter.id)

        with pytest.raises(Forbidden):
            payment_service.create_or_reuse(booking.id, actor=owner)

    def test_unconfigured_stripe(self, payment_service: PaymentService, mock_stripe, make_booking):
        mock_stripe.ensure_configured.side_effect = UpstreamFailure("Payment system is not configured.")
        booking = make_booking(BookingStatus.PENDING)

        with pytest.raises(UpstreamFailure):
            payment_service.create_or_reuse(booking.id)

    def test_minor_units(self):
        assert to_minor_units(100) == 10000
        assert to_minor_units(19.99) == 1999
        assert to_minor_units(0.1 + 0.2) == 30


class TestPaymentIntentRoute:
    def test_returns_client_secret(self, client: TestClient, make_booking):
        booking = make_booking(BookingStatus.PENDING_PAYMENT)

        response = client.post(f"/bookings/{booking.id}/payment-intent")

        assert response.status_code == 200
        assert response.json() == {"client_secret": "pi_test_1_secret_test"}

    def test_already_processed_echoes_status(self, client: TestClient, make_booking):
        booking = make_booking(BookingStatus.CONFIRMED)

        response = client.post(f"/bookings/{booking.id}/payment-intent")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Booking already processed"
        assert data["current_status"] == "confirmed"

    def test_misconfigured_processor_is_500(self, client: TestClient, mock_stripe, make_booking):
        mock_stripe.ensure_configured.side_effect = UpstreamFailure(
            "Payment system is not configured. Please contact support."
        )
        booking = make_booking(BookingStatus.PENDING)

        response = client.post(f"/bookings/{booking.id}/payment-intent")

        assert response.status_code == 500
        assert "not configured" in response.json()["error"]


class TestStripeSearch:
    def test_search_by_booking_metadata_newest_first(self, mocker):
        search = mocker.patch(
            "fightcamp.services.stripe_service.stripe.PaymentIntent.search",
            return_value=SimpleNamespace(
                data=[SimpleNamespace(id="pi_old", created=100), SimpleNamespace(id="pi_new", created=200)]
            ),
        )

        intents = StripeService(api_key="sk_test_abc123").search_booking_intents("b-1", "BK-7QX2")

        assert [intent.id for intent in intents] == ["pi_new", "pi_old"]
        search.assert_called_once_with(
            query="metadata['booking_id']:'b-1' OR metadata['booking_reference']:'BK-7QX2'", limit=10
        )

    def test_search_failure_is_upstream(self, mocker):
        mocker.patch(
            "fightcamp.services.stripe_service.stripe.PaymentIntent.search",
            side_effect=stripe.APIConnectionError("network down"),
        )

        with pytest.raises(UpstreamFailure):
            StripeService(api_key="sk_test_abc123").search_booking_intents("b-1")
