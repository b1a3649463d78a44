"""Pydantic schemas for role operations."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import ConfigDict, Field, StrictBool, StrictStr, StringConstraints, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, PageQuery, Pagination

RoleName = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
ModuleName = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]


class RoleCreate(CamelModel):
    name: RoleName
    access_modules: list[ModuleName] = Field(default_factory=list)

    @field_validator("access_modules", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise PydanticCustomError("null_value", "Field may not be null")
        return value


class RoleUpdate(CamelModel):
    """Partial update: only fields present in the payload are applied."""

    name: RoleName | None = None
    access_modules: list[ModuleName] | None = None
    active: StrictBool | None = None

    @field_validator("name", "access_modules", "active", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise PydanticCustomError("null_value", "Field may not be null")
        return value


class RoleQuery(PageQuery):
    search: str | None = None
    active: bool | None = None


class RoleSummary(CamelModel):
    id: str
    name: str
    access_modules: list[str]

    model_config = ConfigDict(from_attributes=True)


class RoleRead(RoleSummary):
    active: bool
    created_at: datetime


class RoleEnvelope(CamelModel):
    message: str
    role: RoleRead


class RoleList(CamelModel):
    roles: list[RoleRead]
    pagination: Pagination
