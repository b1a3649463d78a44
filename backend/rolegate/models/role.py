"""Database model for roles."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rolegate.db.base import Base
from rolegate.db.types import UTCDateTime


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(Base):
    """Named bundle of access modules assignable to users."""

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    access_modules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)

    def grants(self, module: str) -> bool:
        """Exact, case-sensitive membership test."""

        return module in (self.access_modules or [])


# Backstop for the check-then-write race on role names
Index("uq_roles_name_lower", func.lower(Role.name), unique=True)
