"""Schemas for module access checks."""
from __future__ import annotations

from typing import Annotated

from pydantic import StrictStr, StringConstraints

from .common import CamelModel, TargetId


class AccessCheckRequest(CamelModel):
    user_id: TargetId
    module: Annotated[StrictStr, StringConstraints(min_length=1)]


class AccessCheckResponse(CamelModel):
    message: str
    user_id: str
    module: str
    allowed: bool
    reason: str
