"""Shared fixtures: an in-memory database, a session on it and an API client."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

os.environ.setdefault("ROLEGATE_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ROLEGATE_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.core.dependencies import get_db
from rolegate.core.security import PasswordHasher
from rolegate.db.session import build_engine, create_schema
from rolegate.main import app
from rolegate.models import Role, User


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def role_factory(session):
    async def create(name: str = "Editor", modules: list[str] | None = None, active: bool = True) -> Role:
        role = Role(name=name, access_modules=list(modules or []), active=active)
        session.add(role)
        await session.commit()
        return role

    return create


@pytest.fixture
def user_factory(session):
    counter = {"n": 0}

    async def create(role: Role, *, active: bool = True, **fields) -> User:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "first_name": "Test",
            "last_name": f"User{n}",
            "email": f"user{n}@example.com",
            "username": f"user{n}",
            "password_hash": PasswordHasher.hash("secret123"),
        }
        values.update(fields)
        user = User(role_id=role.id, active=active, **values)
        session.add(user)
        await session.commit()
        return user

    return create
