"""Validation layer.

Side-effect-free checks run before any store access. Every function here
reports the *first* failure only, as a single :class:`BadInput` or
:class:`BadId` naming the offending field.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from rolegate.core.errors import BadId, BadInput, IdentityError
from rolegate.schemas.common import is_record_id

M = TypeVar("M", bound=BaseModel)

_LOCATION_PREFIXES = {"body", "query", "path"}


def _field_from_loc(loc: Sequence[Any]) -> str | None:
    for part in reversed(tuple(loc)):
        if isinstance(part, str) and part not in _LOCATION_PREFIXES:
            return part
    return None


def error_from_details(errors: Sequence[Mapping[str, Any]]) -> IdentityError:
    """Reduce pydantic/FastAPI error details to the first failure."""

    if not errors:
        return BadInput("Invalid input")
    first = errors[0]
    field = _field_from_loc(first.get("loc", ()))
    message = first.get("msg", "Invalid input")
    if first.get("type") == "bad_id":
        return BadId(message, field=field)
    return BadInput(message, field=field)


def validate_payload(model: type[M], raw: Any) -> M | IdentityError:
    """Validate ``raw`` against ``model``; return the model or the first failure."""

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        return error_from_details(exc.errors())


def require_record_id(value: Any, entity: str) -> str:
    """Check identifier format and return the normalized identifier."""

    if not is_record_id(value):
        raise BadId(f"Invalid {entity} ID format", field="id")
    return value.lower()
