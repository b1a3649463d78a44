from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from rolegate.core.errors import BadRole, DuplicateIdentity, NotFound
from rolegate.core.security import PasswordHasher, SessionSigner
from rolegate.models import User
from rolegate.schemas.user import SignupRequest, UserUpdate
from rolegate.services import users as user_service


def _signup(role_id: str, **overrides) -> SignupRequest:
    fields = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "username": "ada",
        "password": "secret123",
        "role": role_id,
    }
    fields.update(overrides)
    return SignupRequest.model_validate(fields)


async def _user_count(session) -> int:
    result = await session.execute(select(func.count()).select_from(User))
    return result.scalar_one()


async def test_signup_creates_user_and_token(session, role_factory):
    role = await role_factory("Editor", ["reports"])
    signer = SessionSigner(secret_key="test-secret")

    user, token = await user_service.signup(session, _signup(role.id), signer)

    assert user.role is not None
    assert user.role.name == "Editor"
    assert user.active is True
    assert PasswordHasher.verify("secret123", user.password_hash)
    assert signer.loads(token) == {"sub": user.id}


async def test_signup_with_unknown_role_creates_nothing(session):
    with pytest.raises(BadRole):
        await user_service.signup(session, _signup(str(uuid.uuid4())), SessionSigner(secret_key="x"))

    assert await _user_count(session) == 0


@pytest.mark.parametrize(
    ("overrides", "field"),
    [({"email": "ADA@Example.com", "username": "other"}, "email"), ({"email": "o@example.com", "username": "ADA"}, "username")],
)
async def test_signup_identity_collision_is_case_insensitive(session, role_factory, user_factory, overrides, field):
    role = await role_factory()
    await user_factory(role, email="ada@example.com", username="ada")

    with pytest.raises(DuplicateIdentity) as exc_info:
        await user_service.signup(session, _signup(role.id, **overrides), SessionSigner(secret_key="x"))

    assert exc_info.value.field == field


async def test_update_user_to_own_email_is_not_a_duplicate(session, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role, email="ada@example.com")

    updated = await user_service.update_user(session, user.id, UserUpdate(email="ada@example.com", first_name="Augusta"))

    assert updated.email == "ada@example.com"
    assert updated.first_name == "Augusta"


async def test_update_user_to_taken_username(session, role_factory, user_factory):
    role = await role_factory()
    await user_factory(role, username="ada")
    other = await user_factory(role, username="grace")

    with pytest.raises(DuplicateIdentity):
        await user_service.update_user(session, other.id, UserUpdate(username="Ada"))


async def test_update_user_to_unknown_role(session, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role)

    with pytest.raises(BadRole):
        await user_service.update_user(session, user.id, UserUpdate(role=str(uuid.uuid4())))


async def test_update_user_hashes_new_password_and_clears_phone(session, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role, phone_number="555-0100")

    updated = await user_service.update_user(
        session, user.id, UserUpdate.model_validate({"password": "n3w-secret", "phoneNumber": None})
    )

    assert PasswordHasher.verify("n3w-secret", updated.password_hash)
    assert updated.phone_number is None


async def test_delete_user(session, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role)

    await user_service.delete_user(session, user.id)
    await session.commit()

    with pytest.raises(NotFound):
        await user_service.get_user(session, user.id)


async def test_signup_endpoint_sets_session_cookie(client, role_factory):
    role = await role_factory("Editor", ["reports"])

    response = await client.post(
        "/api/users/signup",
        json={
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@example.com",
            "username": "ada",
            "password": "secret123",
            "role": role.id,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["token"]
    assert body["user"]["role"] == {"id": role.id, "name": "Editor", "accessModules": ["reports"]}
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]
    assert "rolegate_session=" in response.headers["set-cookie"]


async def test_signup_endpoint_reports_first_invalid_field(client, role_factory):
    role = await role_factory()

    response = await client.post(
        "/api/users/signup",
        json={"firstName": "Ada", "email": 42, "username": "", "password": "123", "role": role.id},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "bad-input"
    assert body["field"] == "lastName"


async def test_signup_endpoint_unknown_role(client):
    response = await client.post(
        "/api/users/signup",
        json={
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@example.com",
            "username": "ada",
            "password": "secret123",
            "role": str(uuid.uuid4()),
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad-role"
    assert "set-cookie" not in response.headers


async def test_get_user_endpoint_not_found(client):
    response = await client.get(f"/api/users/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"error": "not-found", "message": "User not found"}


async def test_update_user_endpoint_rejects_null_email(client, role_factory, user_factory):
    role = await role_factory()
    user = await user_factory(role)

    response = await client.put(f"/api/users/{user.id}", json={"email": None})

    assert response.status_code == 400
    assert response.json()["field"] == "email"


async def test_list_users_endpoint_search(client, role_factory, user_factory):
    role = await role_factory()
    await user_factory(role, first_name="Grace", username="hopper")
    await user_factory(role, first_name="Ada", username="ada")

    response = await client.get("/api/users", params={"search": "GRA"})

    assert response.status_code == 200
    body = response.json()
    assert [user["username"] for user in body["users"]] == ["hopper"]
    assert body["pagination"]["total"] == 1


async def test_signup_username_collision_folds_non_ascii_case(session, role_factory, user_factory):
    role = await role_factory()
    await user_factory(role, username="ÖSTEN")

    with pytest.raises(DuplicateIdentity) as exc_info:
        await user_service.signup(
            session, _signup(role.id, email="o@example.com", username="östen"), SessionSigner(secret_key="x")
        )

    assert exc_info.value.field == "username"
    assert await _user_count(session) == 1
