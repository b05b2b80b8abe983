"""
Tests for gym listing, verification, packages and the booking dashboard
"""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from fightcamp.models.booking import BookingStatus
from fightcamp.models.gym import Gym, GymStatus, VerificationStatus

from conftest import headers_for


class TestGymRoutes:
    def test_owner_lists_draft_gym(self, client: TestClient, db: Session, owner, owner_headers):
        response = client.post(
            "/gyms",
            json={"name": "Bangkok Fight Lab", "city": "Bangkok", "currency": "THB", "disciplines": ["muay_thai"]},
            headers=owner_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["owner_id"] == str(owner.id)
        assert data["verification_status"] == "draft"
        assert data["status"] == "pending"

    def test_submit_for_verification(self, client: TestClient, owner_headers):
        response = client.post(
            "/gyms", json={"name": "Evolve", "submit_for_verification": True}, headers=owner_headers
        )

        assert response.json()["verification_status"] == "pending"

    def test_fighter_cannot_list_gym(self, client: TestClient, fighter_headers):
        response = client.post("/gyms", json={"name": "Garage Gym"}, headers=fighter_headers)

        assert response.status_code == 403

    def test_admin_verifies_gym(self, client: TestClient, db: Session, owner, admin_headers):
        gym = Gym(owner_id=owner.id, name="New Camp", currency="USD")
        db.add(gym)
        db.commit()

        response = client.post(f"/gyms/{gym.id}/verify", json={"approve": True}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["verification_status"] == "verified"
        db.refresh(gym)
        assert gym.status == GymStatus.APPROVED

    def test_admin_rejects_gym(self, client: TestClient, db: Session, owner, admin_headers):
        gym = Gym(owner_id=owner.id, name="Sketchy Camp", currency="USD")
        db.add(gym)
        db.commit()

        response = client.post(
            f"/gyms/{gym.id}/verify", json={"approve": False, "reason": "No address"}, headers=admin_headers
        )

        assert response.json()["verification_status"] == "rejected"
        db.refresh(gym)
        assert gym.verification_status == VerificationStatus.REJECTED

    def test_owner_cannot_verify(self, client: TestClient, gym, owner_headers):
        response = client.post(f"/gyms/{gym.id}/verify", json={"approve": True}, headers=owner_headers)

        assert response.status_code == 403

    def test_get_gym(self, client: TestClient, gym):
        response = client.get(f"/gyms/{gym.id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Tiger Muay Thai"


class TestPackages:
    def test_create_package_and_variant(self, client: TestClient, gym, owner_headers):
        package = client.post(
            f"/gyms/{gym.id}/packages",
            json={"name": "Fight prep", "price": 900, "booking_mode": "instant"},
            headers=owner_headers,
        )
        assert package.status_code == 201
        assert package.json()["booking_mode"] == "instant"

        variant = client.post(
            f"/packages/{package.json()['id']}/variants",
            json={"name": "Private bungalow", "price": 1200},
            headers=owner_headers,
        )
        assert variant.status_code == 201
        assert variant.json()["package_id"] == package.json()["id"]

    def test_default_booking_mode(self, client: TestClient, gym, owner_headers):
        response = client.post(f"/gyms/{gym.id}/packages", json={"name": "Week pass"}, headers=owner_headers)

        assert response.json()["booking_mode"] == "request_to_book"

    def test_other_owner_cannot_add_package(self, client: TestClient, gym, other_owner):
        response = client.post(
            f"/gyms/{gym.id}/packages", json={"name": "Hijack"}, headers=headers_for(other_owner)
        )

        assert response.status_code == 403


class TestGymBookings:
    def test_owner_dashboard(self, client: TestClient, make_booking, gym, owner_headers):
        make_booking(BookingStatus.PENDING)
        make_booking(BookingStatus.PENDING)
        make_booking(BookingStatus.CONFIRMED)

        everything = client.get(f"/gyms/{gym.id}/bookings", headers=owner_headers)
        pending = client.get(f"/gyms/{gym.id}/bookings?status=pending", headers=owner_headers)

        assert everything.json()["total"] == 3
        assert pending.json()["total"] == 2
        assert all("booking_pin" not in booking for booking in pending.json()["bookings"])

    def test_paging(self, client: TestClient, make_booking, gym, owner_headers):
        for _ in range(3):
            make_booking()

        response = client.get(f"/gyms/{gym.id}/bookings?skip=2&limit=2", headers=owner_headers)

        data = response.json()
        assert data["total"] == 3
        assert len(data["bookings"]) == 1
        assert data["page"] == 2

    def test_dashboard_is_private(self, client: TestClient, gym, fighter_headers):
        response = client.get(f"/gyms/{gym.id}/bookings", headers=fighter_headers)

        assert response.status_code == 403
