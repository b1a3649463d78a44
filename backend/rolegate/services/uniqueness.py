"""Uniqueness resolver for case-insensitive identity fields."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import duplicate_error
from rolegate.models import Role, User

logger = logging.getLogger(__name__)

UNIQUE_FIELDS: dict[str, tuple[type[Role] | type[User], tuple[str, ...]]] = {
    "role": (Role, ("name",)),
    "user": (User, ("email", "username")),
}


async def check_unique(
    session: AsyncSession, entity: str, field: str, value: str, exclude_id: str | None = None
) -> bool:
    """Return True when another record already holds ``value`` in ``field``.

    Matching is case-insensitive on the full value. ``exclude_id`` keeps a
    record being updated from colliding with itself.
    """

    model, fields = UNIQUE_FIELDS[entity]
    if field not in fields:
        raise ValueError(f"{entity}.{field} is not a unique field")

    column = getattr(model, field)
    stmt = select(model.id).where(func.lower(column) == func.lower(value))
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    result = await session.execute(stmt.limit(1))
    return result.first() is not None


async def ensure_unique(
    session: AsyncSession, entity: str, field: str, value: str, exclude_id: str | None = None
) -> None:
    if await check_unique(session, entity, field, value, exclude_id):
        logger.warning("Rejected duplicate %s %s", entity, field)
        raise duplicate_error(entity, field)
