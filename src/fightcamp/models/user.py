"""
User Model
Represents fighters, gym owners and platform admins
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import relationship

from fightcamp.database import Base


class UserRole(str, enum.Enum):
    """User roles in the system"""

    FIGHTER = "fighter"  # Books training camps
    OWNER = "owner"  # Owns and manages gyms
    ADMIN = "admin"  # Platform staff, full access


class User(Base):
    """
    User Model
    Authenticated accounts. Guests book without one.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # User Details
    full_name = Column(String(255), nullable=False)
    phone = Column(String(30))

    # Role & Permissions
    role = Column(
        SQLEnum(UserRole, values_callable=lambda x: [e.value for e in x]),
        default=UserRole.FIGHTER,
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Security
    last_login = Column(DateTime, nullable=True)
    failed_login_attempts = Column(Integer, default=0)
    locked_until = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    gyms = relationship("Gym", back_populates="owner")

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER
