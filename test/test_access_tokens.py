"""
Tests for magic-link access tokens
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from fightcamp.exceptions import Forbidden, InvalidToken, NotFound, TokenAlreadyUsed, TokenExpired
from fightcamp.models.access_token import BookingAccessToken
from fightcamp.services.access_token_service import AccessTokenService, hash_token

from conftest import TestingSessionLocal


class TestIssue:
    def test_only_the_hash_is_stored(self, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com")

        assert len(issued.raw_token) == 64
        rows = db.query(BookingAccessToken).all()
        assert len(rows) == 1
        assert rows[0].token_hash == hash_token(issued.raw_token)
        for column in BookingAccessToken.__table__.columns:
            assert getattr(rows[0], column.name) != issued.raw_token

    def test_email_match_is_case_insensitive(self, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "GUEST@Example.com")

        access = AccessTokenService(db).validate(issued.raw_token)
        assert access.booking_id == booking.id
        assert access.email == "guest@example.com"

    def test_email_mismatch_is_forbidden(self, db: Session, make_booking):
        booking = make_booking()
        with pytest.raises(Forbidden):
            AccessTokenService(db).issue(booking.id, "someone-else@example.com")
        assert db.query(BookingAccessToken).count() == 0

    def test_unknown_booking(self, db: Session):
        with pytest.raises(NotFound):
            AccessTokenService(db).issue(uuid4(), "guest@example.com")

    def test_default_expiry_is_ninety_days(self, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com")

        remaining = issued.expires_at - datetime.utcnow()
        assert timedelta(days=89) < remaining <= timedelta(days=90)


class TestValidate:
    def test_short_token_is_rejected_before_lookup(self, db: Session):
        with pytest.raises(InvalidToken):
            AccessTokenService(db).validate("abc123")

    def test_unknown_token(self, db: Session):
        with pytest.raises(NotFound):
            AccessTokenService(db).validate("f" * 64)

    def test_prefix_of_a_real_token_does_not_match(self, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com")

        with pytest.raises(NotFound):
            AccessTokenService(db).validate(issued.raw_token[:40])

    def test_expired_token(self, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com", expires_in_days=1)

        with pytest.raises(TokenExpired):
            AccessTokenService(db).validate(issued.raw_token, now=datetime.utcnow() + timedelta(days=2))

    def test_reusable_token_validates_repeatedly(self, db: Session, make_booking):
        booking = make_booking()
        service = AccessTokenService(db)
        issued = service.issue(booking.id, "guest@example.com")

        service.validate(issued.raw_token)
        service.validate(issued.raw_token)

        assert db.query(BookingAccessToken).one().used_at is None

    def test_single_use_token_is_consumed_once(self, db: Session, make_booking):
        booking = make_booking()
        service = AccessTokenService(db)
        issued = service.issue(booking.id, "guest@example.com", single_use=True)

        service.validate(issued.raw_token)
        assert db.query(BookingAccessToken).one().used_at is not None

        with pytest.raises(TokenAlreadyUsed):
            service.validate(issued.raw_token)

    def test_mark_used_stamps_only_once(self, db: Session, make_booking):
        booking = make_booking()
        service = AccessTokenService(db)
        service.issue(booking.id, "guest@example.com", single_use=True)
        token_id = db.query(BookingAccessToken.id).scalar()

        now = datetime.utcnow()
        results = [service.mark_used(token_id, now), service.mark_used(token_id, now)]

        assert results == [True, False]

    def test_concurrent_redemption_has_one_winner(self, db: Session, make_booking, mocker):
        booking = make_booking()
        first = AccessTokenService(db)
        issued = first.issue(booking.id, "guest@example.com", single_use=True)
        other_db = TestingSessionLocal()
        second = AccessTokenService(other_db)
        redeemed = []
        stamp = first.mark_used

        # The second request runs start to finish after the first has read
        # the token as unused but before it stamps it
        def redeem_elsewhere_then_stamp(token_id, now):
            redeemed.append(second.validate(issued.raw_token))
            return stamp(token_id, now)

        mocker.patch.object(first, "mark_used", side_effect=redeem_elsewhere_then_stamp)
        try:
            with pytest.raises(TokenAlreadyUsed):
                first.validate(issued.raw_token)
        finally:
            other_db.close()

        assert [access.booking_id for access in redeemed] == [booking.id]
        assert db.query(BookingAccessToken).one().used_at is not None


class TestAccessTokenRoutes:
    def test_mint_token(self, client: TestClient, make_booking):
        booking = make_booking()

        response = client.post(f"/bookings/{booking.id}/access-token", json={"email": "guest@example.com"})

        assert response.status_code == 200
        data = response.json()
        assert len(data["token"]) == 64
        assert "expires_at" in data

    def test_mint_requires_email(self, client: TestClient, make_booking):
        booking = make_booking()

        response = client.post(f"/bookings/{booking.id}/access-token", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Email is required"

    def test_mint_with_wrong_email(self, client: TestClient, make_booking):
        booking = make_booking()

        response = client.post(f"/bookings/{booking.id}/access-token", json={"email": "thief@example.com"})

        assert response.status_code == 403

    def test_mint_for_unknown_booking(self, client: TestClient):
        response = client.post(f"/bookings/{uuid4()}/access-token", json={"email": "guest@example.com"})

        assert response.status_code == 404

    def test_validate_route(self, client: TestClient, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com")

        response = client.get(f"/bookings/access/{issued.raw_token}")

        assert response.status_code == 200
        data = response.json()
        assert data["booking_id"] == str(booking.id)
        assert data["email"] == "guest@example.com"

    def test_validate_route_errors(self, client: TestClient, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com", single_use=True)

        assert client.get("/bookings/access/short").status_code == 400
        assert client.get(f"/bookings/access/{'a' * 64}").status_code == 404
        assert client.get(f"/bookings/access/{issued.raw_token}").status_code == 200
        assert client.get(f"/bookings/access/{issued.raw_token}").status_code == 410

    def test_expired_token_is_gone(self, client: TestClient, db: Session, make_booking):
        booking = make_booking()
        issued = AccessTokenService(db).issue(booking.id, "guest@example.com")
        token = db.query(BookingAccessToken).one()
        token.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.get(f"/bookings/access/{issued.raw_token}")

        assert response.status_code == 410
        assert response.json()["error"] == "Token has expired"
