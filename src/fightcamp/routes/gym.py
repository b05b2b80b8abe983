"""
Gym API Routes
Listing, verification, packages and the owner's booking dashboard
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from fightcamp.database import get_db
from fightcamp.dependencies.auth import get_admin, get_current_user, require_role
from fightcamp.models.booking import Booking, BookingStatus
from fightcamp.models.gym import Gym, GymStatus, Package, PackageVariant, VerificationStatus
from fightcamp.models.user import User, UserRole
from fightcamp.schemas.booking import BookingList
from fightcamp.schemas.gym import (
    GymCreate,
    GymResponse,
    GymVerify,
    PackageCreate,
    PackageResponse,
    VariantCreate,
    VariantResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Gyms"])


def _get_gym_or_404(db: Session, gym_id: UUID) -> Gym:
    gym = db.query(Gym).filter(Gym.id == gym_id).first()
    if not gym:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gym not found")
    return gym


def _check_gym_access(gym: Gym, current_user: User) -> None:
    if current_user.role != UserRole.ADMIN and gym.owner_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this gym")


@router.post("/gyms", response_model=GymResponse, status_code=status.HTTP_201_CREATED)
def create_gym(
    gym_data: GymCreate,
    current_user: User = Depends(require_role(UserRole.OWNER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """
    List a new gym

    Gyms start as drafts; they take bookings only once an admin verifies them.
    """
    data = gym_data.model_dump(exclude={"submit_for_verification"})
    gym = Gym(
        **data,
        owner_id=current_user.id,
        status=GymStatus.PENDING,
        verification_status=(
            VerificationStatus.PENDING if gym_data.submit_for_verification else VerificationStatus.DRAFT
        ),
    )
    db.add(gym)
    db.commit()
    db.refresh(gym)

    logger.info(f"Gym {gym.name} ({gym.id}) created by {current_user.email}")
    return gym


@router.get("/gyms/{gym_id}", response_model=GymResponse)
def get_gym(gym_id: UUID, db: Session = Depends(get_db)):
    return _get_gym_or_404(db, gym_id)


@router.post("/gyms/{gym_id}/verify", response_model=GymResponse)
def verify_gym(
    gym_id: UUID,
    decision: GymVerify,
    current_user: User = Depends(get_admin),
    db: Session = Depends(get_db),
):
    """Approve or reject a gym (admin only)"""
    gym = _get_gym_or_404(db, gym_id)

    if decision.approve:
        gym.verification_status = VerificationStatus.VERIFIED
        gym.status = GymStatus.APPROVED
    else:
        gym.verification_status = VerificationStatus.REJECTED
        gym.status = GymStatus.REJECTED

    db.commit()
    db.refresh(gym)

    logger.info(
        f"Gym {gym.id} {'approved' if decision.approve else 'rejected'} by {current_user.email}"
        + (f": {decision.reason}" if decision.reason else "")
    )
    return gym


@router.post("/gyms/{gym_id}/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(
    gym_id: UUID,
    package_data: PackageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    gym = _get_gym_or_404(db, gym_id)
    _check_gym_access(gym, current_user)

    package = Package(gym_id=gym.id, **package_data.model_dump())
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@router.post("/packages/{package_id}/variants", response_model=VariantResponse, status_code=status.HTTP_201_CREATED)
def create_variant(
    package_id: UUID,
    variant_data: VariantCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    _check_gym_access(package.gym, current_user)

    variant = PackageVariant(package_id=package.id, **variant_data.model_dump())
    db.add(variant)
    db.commit()
    db.refresh(variant)
    return variant


@router.get("/gyms/{gym_id}/bookings", response_model=BookingList)
def list_gym_bookings(
    gym_id: UUID,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bookings of one gym, newest first, for the owner dashboard"""
    gym = _get_gym_or_404(db, gym_id)
    _check_gym_access(gym, current_user)

    query = db.query(Booking).filter(Booking.gym_id == gym.id)
    if status_filter:
        query = query.filter(Booking.status == status_filter)

    total = query.count()
    bookings = query.order_by(Booking.created_at.desc()).offset(skip).limit(limit).all()

    return {
        "bookings": bookings,
        "total": total,
        "page": (skip // limit) + 1,
        "page_size": limit,
    }
