"""Pydantic schemas for user operations.

Field declaration order is the validation order: when several fields are
invalid the first one reported is the first declared here.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import ConfigDict, StrictBool, StrictStr, StringConstraints, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, PageQuery, Pagination, ReferenceId
from .role import RoleSummary

PASSWORD_MIN_LENGTH = 6

NameStr = Annotated[StrictStr, StringConstraints(min_length=1, max_length=128)]
EmailStr = Annotated[StrictStr, StringConstraints(min_length=1, max_length=255)]
UsernameStr = Annotated[StrictStr, StringConstraints(min_length=1, max_length=64)]
PasswordStr = Annotated[StrictStr, StringConstraints(min_length=PASSWORD_MIN_LENGTH, max_length=128)]
PhoneStr = Annotated[StrictStr, StringConstraints(max_length=32)]


class SignupRequest(CamelModel):
    first_name: NameStr
    last_name: NameStr
    email: EmailStr
    username: UsernameStr
    password: PasswordStr
    phone_number: PhoneStr | None = None
    role: ReferenceId


class UserUpdate(CamelModel):
    """Partial update.

    Omitted fields are left untouched. ``phone_number`` may be sent as
    ``null`` to clear it; every other field rejects an explicit ``null``.
    Use ``model_fields_set`` to tell "absent" from "present".
    """

    first_name: NameStr | None = None
    last_name: NameStr | None = None
    email: EmailStr | None = None
    username: UsernameStr | None = None
    password: PasswordStr | None = None
    phone_number: PhoneStr | None = None
    role: ReferenceId | None = None
    active: StrictBool | None = None

    @field_validator("first_name", "last_name", "email", "username", "password", "role", "active", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise PydanticCustomError("null_value", "Field may not be null")
        return value

    def provided(self) -> dict[str, object]:
        """Return the fields present in the payload, keyed by attribute name."""

        return {name: getattr(self, name) for name in self.model_fields_set}


class UserFilter(CamelModel):
    """Selects the users a homogeneous batch update applies to."""

    search: StrictStr | None = None
    active: StrictBool | None = None
    role: ReferenceId | None = None


class UserQuery(PageQuery):
    search: str | None = None
    active: bool | None = None


class UserRead(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    username: str
    phone_number: str | None = None
    role: RoleSummary | None = None
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserEnvelope(CamelModel):
    message: str
    user: UserRead


class SignupResponse(UserEnvelope):
    token: str


class UserList(CamelModel):
    users: list[UserRead]
    pagination: Pagination
