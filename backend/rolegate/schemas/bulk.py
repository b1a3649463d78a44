"""Schemas for multi-record user updates."""
from __future__ import annotations

from typing import Any

from pydantic import Field

from .common import CamelModel
from .user import UserFilter, UserUpdate


class BulkSameRequest(CamelModel):
    updates: UserUpdate
    filter: UserFilter | None = None


class BulkUserChange(CamelModel):
    # Validated per element by the batch coordinator, which names the user id on failure
    user_id: Any = None
    data: Any = None


class BulkDifferentRequest(CamelModel):
    updates: list[BulkUserChange] = Field(..., min_length=1)


class BulkResult(CamelModel):
    message: str = "Users updated successfully"
    matched_count: int
    modified_count: int
