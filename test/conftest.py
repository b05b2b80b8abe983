"""
Pytest Configuration and Fixtures
"""

from datetime import date, datetime, timedelta
from types import SimpleNamespace
from typing import Callable, Generator
from uuid import uuid4

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import fightcamp.models  # noqa: F401
from fightcamp.database import Base, get_db
from fightcamp.dependencies.services import get_notification_service, get_stripe_service
from fightcamp.main import app
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.models.gym import BookingMode, Gym, GymStatus, Package, PackageVariant, VerificationStatus
from fightcamp.models.user import User, UserRole
from fightcamp.services.booking_service import BookingService
from fightcamp.services.notification_service import NotificationService
from fightcamp.services.payment_service import PaymentService
from fightcamp.services.stripe_service import StripeService
from fightcamp.utils.auth import create_access_token, get_password_hash

fake = Faker()

TEST_PASSWORD = "Fighter123"

# One in-memory database shared by the test session and the app
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=engine)


def make_intent(intent_id: str, status: str = "requires_payment_method") -> SimpleNamespace:
    return SimpleNamespace(id=intent_id, client_secret=f"{intent_id}_secret_test", status=status)


@pytest.fixture
def mock_stripe(mocker):
    """StripeService double; intents live in a dict keyed by id"""
    stripe_service = mocker.MagicMock(spec=StripeService)
    stripe_service.configured = True
    stripe_service.intents = {}

    def create_authorization(amount, currency, metadata, idempotency_key=None):
        intent = make_intent(f"pi_test_{len(stripe_service.intents) + 1}")
        stripe_service.intents[intent.id] = intent
        return intent

    def retrieve_intent(payment_intent_id):
        return stripe_service.intents[payment_intent_id]

    stripe_service.create_authorization.side_effect = create_authorization
    stripe_service.retrieve_intent.side_effect = retrieve_intent
    stripe_service.search_booking_intents.return_value = []
    return stripe_service


@pytest.fixture
def mock_notifier(mocker):
    notifier = mocker.MagicMock(spec=NotificationService)
    for name in (
        "send_request_received",
        "send_new_booking_alert",
        "send_request_accepted",
        "send_request_declined",
        "send_booking_confirmed",
        "send_booking_cancelled",
        "send_access_link",
    ):
        getattr(notifier, name).return_value = {"success": True}
    return notifier


@pytest.fixture
def payment_service(db: Session, mock_stripe) -> PaymentService:
    return PaymentService(db, mock_stripe)


@pytest.fixture
def booking_service(db: Session, payment_service: PaymentService, mock_notifier) -> BookingService:
    return BookingService(db, payment_service, mock_notifier)


@pytest.fixture(scope="function")
def client(db: Session, mock_stripe, mock_notifier, mocker) -> Generator[TestClient, None, None]:
    """Create a test client with database and collaborator overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    mocker.patch("fightcamp.main.init_db")
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_service] = lambda: mock_stripe
    app.dependency_overrides[get_notification_service] = lambda: mock_notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _create_user(db: Session, role: UserRole, **overrides) -> User:
    user = User(
        email=overrides.pop("email", f"{role.value}-{uuid4().hex[:8]}@example.com"),
        hashed_password=get_password_hash(TEST_PASSWORD),
        full_name=fake.name(),
        phone=fake.phone_number()[:30],
        role=role,
        is_active=True,
        **overrides,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db: Session) -> User:
    return _create_user(db, UserRole.OWNER)


@pytest.fixture
def other_owner(db: Session) -> User:
    return _create_user(db, UserRole.OWNER)


@pytest.fixture
def admin(db: Session) -> User:
    return _create_user(db, UserRole.ADMIN)


@pytest.fixture
def fighter(db: Session) -> User:
    return _create_user(db, UserRole.FIGHTER)


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest.fixture
def owner_headers(owner: User) -> dict:
    return headers_for(owner)


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return headers_for(admin)


@pytest.fixture
def fighter_headers(fighter: User) -> dict:
    return headers_for(fighter)


@pytest.fixture
def gym(db: Session, owner: User) -> Gym:
    """A verified, approved gym that takes bookings"""
    gym = Gym(
        owner_id=owner.id,
        name="Tiger Muay Thai",
        email="camp@example.com",
        city="Phuket",
        country="Thailand",
        disciplines=["muay_thai"],
        currency="THB",
        status=GymStatus.APPROVED,
        verification_status=VerificationStatus.VERIFIED,
    )
    db.add(gym)
    db.commit()
    db.refresh(gym)
    return gym


@pytest.fixture
def package(db: Session, gym: Gym) -> Package:
    package = Package(gym_id=gym.id, name="Two week camp", price=500, booking_mode=BookingMode.REQUEST_TO_BOOK)
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@pytest.fixture
def instant_package(db: Session, gym: Gym) -> Package:
    package = Package(gym_id=gym.id, name="Drop-in week", price=150, booking_mode=BookingMode.INSTANT)
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@pytest.fixture
def variant(db: Session, package: Package) -> PackageVariant:
    variant = PackageVariant(package_id=package.id, name="Shared room", price=450)
    db.add(variant)
    db.commit()
    db.refresh(variant)
    return variant


@pytest.fixture
def make_booking(db: Session, gym: Gym) -> Callable[..., Booking]:
    """Insert a guest booking directly, in whatever status the test needs"""
    counter = {"n": 0}

    def _make(status: BookingStatus = BookingStatus.PENDING, **overrides) -> Booking:
        counter["n"] += 1
        start = date.today() + timedelta(days=30)
        values = dict(
            booking_reference=f"BK-T{counter['n']:02d}"[:6],
            booking_pin="123456",
            gym_id=gym.id,
            start_date=start,
            end_date=start + timedelta(days=14),
            discipline="muay_thai",
            experience_level="beginner",
            total_price=100.0,
            guest_email="guest@example.com",
            guest_phone="+66800000000",
            guest_name="Guest Fighter",
            status=status,
            request_submitted_at=datetime.utcnow(),
        )
        values.update(overrides)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make
