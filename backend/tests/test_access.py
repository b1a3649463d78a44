from __future__ import annotations

import uuid

import pytest

from rolegate.core.errors import BadId, BadInput, NotFound
from rolegate.services.access import AccessReason, check_access


async def test_granted_when_role_lists_module(session, role_factory, user_factory):
    role = await role_factory("Editor", ["reports", "billing"])
    user = await user_factory(role)

    decision = await check_access(session, user.id, "billing")

    assert decision.allowed is True
    assert decision.reason is AccessReason.GRANTED
    assert decision.as_error() is None


async def test_module_match_is_exact(session, role_factory, user_factory):
    role = await role_factory("Editor", ["reports"])
    user = await user_factory(role)

    for module in ("Reports", "report", "reports "):
        decision = await check_access(session, user.id, module)
        assert decision.reason is AccessReason.NO_ACCESS


async def test_inactive_user_is_denied_even_when_granted(session, role_factory, user_factory):
    role = await role_factory("Editor", ["reports"])
    user = await user_factory(role, active=False)

    decision = await check_access(session, user.id, "reports")

    assert decision.allowed is False
    assert decision.reason is AccessReason.INACTIVE_ACCOUNT
    assert decision.as_error().kind == "inactive-account"


async def test_user_whose_role_was_removed_has_no_access(session, role_factory, user_factory):
    role = await role_factory("Editor", ["reports"])
    user = await user_factory(role)
    user.role_id = str(uuid.uuid4())
    await session.commit()

    decision = await check_access(session, user.id, "reports")

    assert decision.reason is AccessReason.NO_ACCESS


async def test_rejects_bad_arguments(session, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role)

    with pytest.raises(BadId):
        await check_access(session, "abc", "reports")
    with pytest.raises(BadInput):
        await check_access(session, user.id, "")
    with pytest.raises(NotFound):
        await check_access(session, str(uuid.uuid4()), "reports")


async def test_access_check_endpoint_granted(client, role_factory, user_factory):
    role = await role_factory("Editor", ["reports"])
    user = await user_factory(role)

    response = await client.post("/api/users/access-check", json={"userId": user.id, "module": "reports"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "User has access to the module",
        "userId": user.id,
        "module": "reports",
        "allowed": True,
        "reason": "granted",
    }


async def test_access_check_endpoint_denied(client, role_factory, user_factory):
    role = await role_factory("Editor", ["reports"])
    user = await user_factory(role)

    response = await client.post("/api/users/access-check", json={"userId": user.id, "module": "billing"})

    assert response.status_code == 403
    assert response.json() == {
        "error": "no-access",
        "message": "User does not have access to this module",
        "id": user.id,
        "module": "billing",
        "allowed": False,
        "reason": "no-access",
    }


async def test_access_check_endpoint_bad_user_id(client):
    response = await client.post("/api/users/access-check", json={"userId": "nope", "module": "reports"})

    assert response.status_code == 400
    assert response.json()["error"] == "bad-id"
    assert response.json()["field"] == "userId"
