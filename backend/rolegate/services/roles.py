"""Role service functions for CRUD."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import NotFound, RoleInUse
from rolegate.db.errors import store_write
from rolegate.models import Role
from rolegate.schemas.common import Page
from rolegate.schemas.role import RoleCreate, RoleQuery, RoleUpdate
from rolegate.services.references import count_users_referencing
from rolegate.services.uniqueness import ensure_unique
from rolegate.services.validation import require_record_id

logger = logging.getLogger(__name__)


def _dedupe(modules: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(modules))


async def create_role(session: AsyncSession, data: RoleCreate) -> Role:
    await ensure_unique(session, "role", "name", data.name)

    role = Role(name=data.name, access_modules=_dedupe(data.access_modules), active=True)
    session.add(role)
    async with store_write(session, "role"):
        await session.flush()
    logger.info("Created role %s (%s)", role.id, role.name)
    return role


async def list_roles(session: AsyncSession, query: RoleQuery) -> Page[Role]:
    conditions = []
    if query.search:
        conditions.append(Role.name.icontains(query.search, autoescape=True))
    if query.active is not None:
        conditions.append(Role.active == query.active)

    result = await session.execute(
        select(Role)
        .where(*conditions)
        .order_by(Role.created_at.desc(), Role.id)
        .offset(query.offset)
        .limit(query.limit)
        .execution_options(populate_existing=True)
    )
    total = await session.execute(select(func.count()).select_from(Role).where(*conditions))
    return Page(items=list(result.scalars().all()), total=total.scalar_one())


async def get_role(session: AsyncSession, role_id: str) -> Role:
    role_id = require_record_id(role_id, "role")
    role = await session.get(Role, role_id, populate_existing=True)
    if role is None:
        raise NotFound("Role not found")
    return role


async def update_role(session: AsyncSession, role_id: str, data: RoleUpdate) -> Role:
    role = await get_role(session, role_id)
    provided = data.model_fields_set

    if "name" in provided and data.name != role.name:
        await ensure_unique(session, "role", "name", data.name, exclude_id=role.id)

    if "name" in provided:
        role.name = data.name
    if "access_modules" in provided:
        role.access_modules = _dedupe(data.access_modules)
    if "active" in provided:
        role.active = data.active

    async with store_write(session, "role"):
        await session.flush()
    return role


async def delete_role(session: AsyncSession, role_id: str) -> None:
    role = await get_role(session, role_id)

    # Not locked against a concurrent signup that assigns this role after the count
    assigned = await count_users_referencing(session, role.id)
    if assigned:
        logger.warning("Refused to delete role %s assigned to %d user(s)", role.id, assigned)
        raise RoleInUse("Cannot delete role as it is assigned to users")

    await session.delete(role)
    async with store_write(session, "role"):
        await session.flush()
    logger.info("Deleted role %s", role.id)
