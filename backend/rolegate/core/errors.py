"""Error taxonomy shared by the services and the HTTP layer.

Every failure a caller can observe is an :class:`IdentityError` subclass.
``kind`` is the stable, transport-agnostic name of the failure class and
``status_code`` the HTTP status it is rendered with.
"""
from __future__ import annotations

import copy
from typing import Any


class IdentityError(Exception):
    """Base class for identity and access-control failures."""

    kind = "server-error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        record_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.record_id = record_id
        self.extra = dict(extra or {})

    def for_record(self, record_id: str) -> IdentityError:
        """Return a copy of this error attributed to a batch element."""

        scoped = copy.copy(self)
        scoped.record_id = record_id
        scoped.message = f"{self.message} for user: {record_id}"
        scoped.args = (scoped.message,)
        return scoped

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.field is not None:
            body["field"] = self.field
        if self.record_id is not None:
            body["id"] = self.record_id
        body.update(self.extra)
        return body


class BadInput(IdentityError):
    """A field is missing, mistyped or malformed."""

    kind = "bad-input"
    status_code = 400


class ForbiddenField(BadInput):
    """A field that may not be changed through the requested operation."""

    kind = "forbidden-field"


class BadId(IdentityError):
    """A record identifier fails the identifier format check."""

    kind = "bad-id"
    status_code = 400


class NotFound(IdentityError):
    kind = "not-found"
    status_code = 404


class DuplicateIdentity(IdentityError):
    """A user email or username collides with another user."""

    kind = "duplicate-identity"
    status_code = 409


class DuplicateName(IdentityError):
    """A role name collides with another role."""

    kind = "duplicate-name"
    status_code = 409


class BadRole(IdentityError):
    kind = "bad-role"
    status_code = 400


class RoleInUse(IdentityError):
    kind = "in-use"
    status_code = 409


class InactiveAccount(IdentityError):
    kind = "inactive-account"
    status_code = 403


class NoAccess(IdentityError):
    kind = "no-access"
    status_code = 403


class StoreError(IdentityError):
    """Unclassified store failure. The message is always generic."""

    kind = "server-error"
    status_code = 500

    def __init__(self, message: str = "Internal server error", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class StoreUnavailable(StoreError):
    """The store could not be reached; the request may be retried."""

    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


_DUPLICATE_MESSAGES = {
    "email": "Email already exists",
    "username": "Username already exists",
}


def duplicate_error(entity: str, field: str | None) -> IdentityError:
    """Build the collision error for ``entity``.

    The resolver and the store-constraint backstop both go through here so a
    collision reads the same however it was detected.
    """

    if entity == "role":
        return DuplicateName("Role name already exists", field="name")
    if field in _DUPLICATE_MESSAGES:
        return DuplicateIdentity(_DUPLICATE_MESSAGES[field], field=field)
    return DuplicateIdentity("Email or username already exists")
