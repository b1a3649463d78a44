"""User service functions for signup, CRUD and partial updates."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import BadRole, IdentityError, NotFound, duplicate_error
from rolegate.core.security import PasswordHasher, SessionSigner
from rolegate.db.errors import store_write
from rolegate.models import User
from rolegate.schemas.common import Page
from rolegate.schemas.user import SignupRequest, UserQuery, UserUpdate
from rolegate.services.references import ensure_role_exists, role_exists
from rolegate.services.uniqueness import check_unique, ensure_unique
from rolegate.services.validation import require_record_id

logger = logging.getLogger(__name__)

# Schema field -> ORM attribute
_COLUMNS = {
    "first_name": "first_name",
    "last_name": "last_name",
    "email": "email",
    "username": "username",
    "password": "password_hash",
    "phone_number": "phone_number",
    "role": "role_id",
    "active": "active",
}


def search_clause(term: str):
    return or_(
        User.first_name.icontains(term, autoescape=True),
        User.last_name.icontains(term, autoescape=True),
        User.email.icontains(term, autoescape=True),
        User.username.icontains(term, autoescape=True),
    )


def to_column_values(changes: dict[str, Any]) -> dict[str, Any]:
    """Turn validated changes into ORM column values, hashing any new password."""

    values: dict[str, Any] = {}
    for field, value in changes.items():
        if field == "password":
            value = PasswordHasher.hash(value)
        values[_COLUMNS[field]] = value
    return values


async def find_change_violation(
    session: AsyncSession, user: User, changes: dict[str, Any]
) -> IdentityError | None:
    """Check cross-record rules for ``changes`` against ``user``.

    Uniqueness is only re-checked for identity fields whose value actually
    changes. Returns the first violation instead of raising it.
    """

    for field in ("email", "username"):
        if field in changes and changes[field] != getattr(user, field):
            if await check_unique(session, "user", field, changes[field], exclude_id=user.id):
                return duplicate_error("user", field)
    if "role" in changes and not await role_exists(session, changes["role"]):
        return BadRole("Role does not exist", field="role")
    return None


async def signup(session: AsyncSession, data: SignupRequest, signer: SessionSigner) -> tuple[User, str]:
    await ensure_role_exists(session, data.role)
    await ensure_unique(session, "user", "email", data.email)
    await ensure_unique(session, "user", "username", data.username)

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        username=data.username,
        password_hash=PasswordHasher.hash(data.password),
        phone_number=data.phone_number,
        role_id=data.role,
        active=True,
    )
    session.add(user)
    async with store_write(session, "user"):
        await session.flush()

    token = signer.issue_for(user.id)
    logger.info("Signed up user %s", user.id)
    return await get_user(session, user.id), token


async def list_users(session: AsyncSession, query: UserQuery) -> Page[User]:
    conditions = []
    if query.search:
        conditions.append(search_clause(query.search))
    if query.active is not None:
        conditions.append(User.active == query.active)

    result = await session.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id)
        .offset(query.offset)
        .limit(query.limit)
        .execution_options(populate_existing=True)
    )
    total = await session.execute(select(func.count()).select_from(User).where(*conditions))
    return Page(items=list(result.scalars().all()), total=total.scalar_one())


async def get_user(session: AsyncSession, user_id: str) -> User:
    user_id = require_record_id(user_id, "user")
    user = await session.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFound("User not found")
    return user


async def update_user(session: AsyncSession, user_id: str, data: UserUpdate) -> User:
    user = await get_user(session, user_id)
    changes = data.provided()

    violation = await find_change_violation(session, user, changes)
    if violation is not None:
        raise violation

    for attribute, value in to_column_values(changes).items():
        setattr(user, attribute, value)
    async with store_write(session, "user"):
        await session.flush()
    return await get_user(session, user.id)


async def delete_user(session: AsyncSession, user_id: str) -> None:
    user = await get_user(session, user_id)
    await session.delete(user)
    async with store_write(session, "user"):
        await session.flush()
    logger.info("Deleted user %s", user.id)
