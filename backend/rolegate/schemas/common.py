"""Shared schema building blocks: camelCase models, identifiers, pagination."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Annotated, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

RECORD_ID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

T = TypeVar("T")


def is_record_id(value: object) -> bool:
    return isinstance(value, str) and RECORD_ID_PATTERN.fullmatch(value) is not None


def _reference_id(value: str) -> str:
    if not is_record_id(value):
        raise PydanticCustomError("record_id_format", "Invalid ID format")
    return value.lower()


def _target_id(value: str) -> str:
    if not is_record_id(value):
        raise PydanticCustomError("bad_id", "Invalid ID format")
    return value.lower()


# An identifier stored in a field of another record (e.g. a user's role)
ReferenceId = Annotated[StrictStr, AfterValidator(_reference_id)]
# The identifier of the record an operation acts on
TargetId = Annotated[StrictStr, AfterValidator(_target_id)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageQuery(CamelModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, query: PageQuery, total: int) -> Pagination:
        return cls(page=query.page, limit=query.limit, total=total, pages=math.ceil(total / query.limit))


@dataclass(slots=True)
class Page(Generic[T]):
    """One page of records plus the total matching the query."""

    items: list[T]
    total: int


class Message(CamelModel):
    message: str
