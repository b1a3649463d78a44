"""Module access evaluation."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import BadInput, IdentityError, InactiveAccount, NoAccess
from rolegate.services.users import get_user
from rolegate.services.validation import require_record_id


class AccessReason(str, Enum):
    GRANTED = "granted"
    INACTIVE_ACCOUNT = "inactive-account"
    NO_ACCESS = "no-access"


_MESSAGES = {
    AccessReason.GRANTED: "User has access to the module",
    AccessReason.INACTIVE_ACCOUNT: "User account is inactive",
    AccessReason.NO_ACCESS: "User does not have access to this module",
}


@dataclass(frozen=True)
class AccessDecision:
    """Represents the outcome of a module access check."""

    user_id: str
    module: str
    allowed: bool
    reason: AccessReason

    @property
    def message(self) -> str:
        return _MESSAGES[self.reason]

    def as_error(self) -> IdentityError | None:
        """Return the denial as an error, or None when access is granted."""

        if self.allowed:
            return None
        error_cls = InactiveAccount if self.reason is AccessReason.INACTIVE_ACCOUNT else NoAccess
        return error_cls(
            self.message,
            record_id=self.user_id,
            extra={"module": self.module, "allowed": False, "reason": self.reason.value},
        )


async def check_access(session: AsyncSession, user_id: str, module: str) -> AccessDecision:
    """Decide whether ``user_id`` may use ``module``.

    An inactive account is denied before its role is consulted, so an inactive
    user whose role grants the module still gets ``INACTIVE_ACCOUNT``.
    """

    user_id = require_record_id(user_id, "user")
    if not isinstance(module, str) or not module:
        raise BadInput("Module must be a non-empty string", field="module")
    user = await get_user(session, user_id)

    if not user.active:
        return AccessDecision(user.id, module, False, AccessReason.INACTIVE_ACCOUNT)

    role = user.role
    if role is None or not role.grants(module):
        return AccessDecision(user.id, module, False, AccessReason.NO_ACCESS)
    return AccessDecision(user.id, module, True, AccessReason.GRANTED)
