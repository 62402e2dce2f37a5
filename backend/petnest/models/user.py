"""
PetNest Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table: applicants, pet posters, and admins.
Who:   Created by UserService.register; referenced by pets and adoptions.

Table Design Rationale:
    - email is stored lower-cased and unique (login key)
    - role is a short VARCHAR holding a UserRole value
    - address is a small JSON document (street/city/state/zip_code); it is
      only ever read as a whole, never filtered on
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from petnest.database import Base
from petnest.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Lower-cased login email",
    )

    # passlib hash string (scheme prefix included)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        server_default=text("'user'"),
    )

    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    address: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
