"""Translation of store failures into the public error taxonomy."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import IdentityError, StoreError, StoreUnavailable, duplicate_error

logger = logging.getLogger(__name__)

# Unique expression indexes declared on the models
UNIQUE_INDEXES: dict[str, tuple[str, str]] = {
    "uq_roles_name_lower": ("role", "name"),
    "uq_users_email_lower": ("user", "email"),
    "uq_users_username_lower": ("user", "username"),
}


def translate_store_error(exc: SQLAlchemyError, entity: str) -> IdentityError:
    """Map a store exception onto the taxonomy without leaking its details."""

    if isinstance(exc, IntegrityError):
        detail = str(exc.orig).lower()
        for index_name, (index_entity, field) in UNIQUE_INDEXES.items():
            if index_name in detail:
                return duplicate_error(index_entity, field)
        if "unique" in detail or "duplicate" in detail:
            return duplicate_error(entity, None)
        return StoreError()
    if isinstance(exc, (OperationalError, InterfaceError)):
        return StoreUnavailable()
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreUnavailable()
    return StoreError()


@asynccontextmanager
async def store_write(session: AsyncSession, entity: str) -> AsyncIterator[None]:
    """Run a mutating store call; roll back and translate any store failure."""

    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        error = translate_store_error(exc, entity)
        if isinstance(error, StoreError):
            logger.exception("Store write failed for %s", entity)
        else:
            logger.warning("Store rejected %s write: %s", entity, error.kind)
        raise error from exc
