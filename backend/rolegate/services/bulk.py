"""Bulk mutation coordinator for multi-user updates.

Two modes:

* homogeneous: one validated payload applied to every user matching a filter,
  issued as a single UPDATE statement;
* heterogeneous: one payload per user. Every element is prepared into a
  write operation first; the first element that fails aborts the batch
  before anything is written, and the prepared operations are then executed
  inside one transaction.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import BadId, BadInput, ForbiddenField, IdentityError, NotFound, duplicate_error
from rolegate.db.errors import store_write
from rolegate.models import User
from rolegate.schemas.bulk import BulkUserChange
from rolegate.schemas.common import is_record_id
from rolegate.schemas.user import UserFilter, UserUpdate
from rolegate.services.references import ensure_role_exists
from rolegate.services.users import find_change_violation, search_clause, to_column_values
from rolegate.services.validation import validate_payload

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("email", "username")


@dataclass(slots=True, frozen=True)
class BulkOutcome:
    matched_count: int
    modified_count: int


@dataclass(slots=True, frozen=True)
class PreparedUpdate:
    """A fully validated single-user write, ready to be issued."""

    user_id: str
    values: dict[str, Any]
    modifies: bool


ElementResult = Union[PreparedUpdate, IdentityError]


def _filter_conditions(user_filter: UserFilter | None) -> list:
    if user_filter is None:
        return []
    conditions = []
    if user_filter.search:
        conditions.append(search_clause(user_filter.search))
    if user_filter.active is not None:
        conditions.append(User.active == user_filter.active)
    if user_filter.role is not None:
        conditions.append(User.role_id == user_filter.role)
    return conditions


async def apply_same_update_to_many(
    session: AsyncSession, changes: UserUpdate, user_filter: UserFilter | None = None
) -> BulkOutcome:
    """Apply one payload to every user matching ``user_filter`` (all users when None)."""

    provided = changes.provided()
    if not provided:
        raise BadInput("Updates object is required", field="updates")
    for field in IDENTITY_FIELDS:
        if field in provided:
            raise ForbiddenField(
                "Email or username updates not allowed in bulk update to avoid unique constraint conflicts",
                field=field,
            )
    if "role" in provided:
        await ensure_role_exists(session, provided["role"])

    values = to_column_values(provided)
    conditions = _filter_conditions(user_filter)
    differs = or_(*(getattr(User, column).is_distinct_from(value) for column, value in values.items()))

    async with store_write(session, "user"):
        matched = await session.execute(select(func.count()).select_from(User).where(*conditions))
        result = await session.execute(
            update(User)
            .where(*conditions, differs)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    outcome = BulkOutcome(matched_count=matched.scalar_one(), modified_count=result.rowcount)
    logger.info(
        "Bulk update applied to %d of %d matched user(s)", outcome.modified_count, outcome.matched_count
    )
    return outcome


async def _prepare(
    session: AsyncSession, index: int, item: BulkUserChange, claimed: dict[tuple[str, str], str]
) -> ElementResult:
    if item.user_id is None:
        return BadInput(f"userId is required for update at index {index}", field="userId")
    if not is_record_id(item.user_id):
        return BadId("Invalid user ID format", field="userId").for_record(str(item.user_id))
    user_id = item.user_id.lower()

    user = await session.get(User, user_id, populate_existing=True)
    if user is None:
        return NotFound("User not found").for_record(user_id)

    if not isinstance(item.data, Mapping) or not item.data:
        return BadInput("data must be a non-empty object", field="data").for_record(user_id)
    changes = validate_payload(UserUpdate, item.data)
    if isinstance(changes, IdentityError):
        return changes.for_record(user_id)
    provided = changes.provided()

    violation = await find_change_violation(session, user, provided)
    if violation is not None:
        return violation.for_record(user_id)

    # Two elements of the same batch claiming one identity value
    for field in IDENTITY_FIELDS:
        if field in provided:
            holder = claimed.setdefault((field, provided[field].lower()), user_id)
            if holder != user_id:
                return duplicate_error("user", field).for_record(user_id)

    values = to_column_values(provided)
    modifies = any(getattr(user, column) != value for column, value in values.items())
    return PreparedUpdate(user_id=user_id, values=values, modifies=modifies)


async def apply_different_updates_to_many(
    session: AsyncSession, items: Sequence[BulkUserChange]
) -> BulkOutcome:
    """Apply a distinct payload to each listed user, all or nothing."""

    if not items:
        raise BadInput("Updates must be a non-empty array", field="updates")

    prepared: list[PreparedUpdate] = []
    claimed: dict[tuple[str, str], str] = {}
    for index, item in enumerate(items):
        result = await _prepare(session, index, item, claimed)
        if isinstance(result, IdentityError):
            logger.warning("Bulk update aborted at index %d (user %s): %s", index, result.record_id, result.kind)
            raise result
        prepared.append(result)

    matched = 0
    async with store_write(session, "user"):
        for op in prepared:
            written = await session.execute(
                update(User)
                .where(User.id == op.user_id)
                .values(**op.values)
                .execution_options(synchronize_session=False)
            )
            matched += written.rowcount

    outcome = BulkOutcome(matched_count=matched, modified_count=sum(1 for op in prepared if op.modifies))
    logger.info("Bulk update applied %d distinct change(s)", len(prepared))
    return outcome
