"""Database model for application users."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.db.base import Base
from rolegate.db.types import UTCDateTime
from rolegate.models.role import Role, _new_id, _utcnow


class User(Base):
    """Application user with hashed password and a single role."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32), default=None)
    # No foreign key: role existence is checked on write and guarded on role deletion
    role_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)

    role: Mapped[Role | None] = relationship(
        Role,
        primaryjoin="foreign(User.role_id) == Role.id",
        viewonly=True,
        lazy="selectin",
    )


Index("uq_users_email_lower", func.lower(User.email), unique=True)
Index("uq_users_username_lower", func.lower(User.username), unique=True)
