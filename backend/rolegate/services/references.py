"""Role reference checks."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import BadRole
from rolegate.models import Role, User


async def role_exists(session: AsyncSession, role_id: str) -> bool:
    result = await session.execute(select(Role.id).where(Role.id == role_id))
    return result.first() is not None


async def ensure_role_exists(session: AsyncSession, role_id: str) -> None:
    if not await role_exists(session, role_id):
        raise BadRole("Role does not exist", field="role")


async def count_users_referencing(session: AsyncSession, role_id: str) -> int:
    result = await session.execute(select(func.count()).select_from(User).where(User.role_id == role_id))
    return result.scalar_one()
