"""User management, access-check and bulk update endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.config import get_settings
from rolegate.core.dependencies import get_db, get_session_signer
from rolegate.core.security import SessionSigner
from rolegate.schemas.access import AccessCheckRequest, AccessCheckResponse
from rolegate.schemas.bulk import BulkDifferentRequest, BulkResult, BulkSameRequest
from rolegate.schemas.common import Message, Pagination
from rolegate.schemas.user import (
    SignupRequest,
    SignupResponse,
    UserEnvelope,
    UserList,
    UserQuery,
    UserRead,
    UserUpdate,
)
from rolegate.services import bulk as bulk_service
from rolegate.services import users as user_service
from rolegate.services.access import check_access

router = APIRouter(prefix="/users", tags=["users"])

SESSION_COOKIE_NAME = "rolegate_session"


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    signer: SessionSigner = Depends(get_session_signer),
) -> SignupResponse:
    user, token = await user_service.signup(session, payload, signer)
    await session.commit()

    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return SignupResponse(message="User created successfully", user=UserRead.model_validate(user), token=token)


@router.get("", response_model=UserList)
async def list_users(
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    active: bool | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> UserList:
    query = UserQuery(search=search, page=page, limit=limit, active=active)
    result = await user_service.list_users(session, query)
    return UserList(
        users=[UserRead.model_validate(user) for user in result.items],
        pagination=Pagination.build(query, result.total),
    )


@router.post("/access-check", response_model=AccessCheckResponse)
async def check_module_access(
    payload: AccessCheckRequest, session: AsyncSession = Depends(get_db)
) -> AccessCheckResponse:
    decision = await check_access(session, payload.user_id, payload.module)
    denial = decision.as_error()
    if denial is not None:
        raise denial
    return AccessCheckResponse(
        message=decision.message,
        user_id=decision.user_id,
        module=decision.module,
        allowed=True,
        reason=decision.reason.value,
    )


@router.put("/bulk/same", response_model=BulkResult)
async def bulk_update_same(payload: BulkSameRequest, session: AsyncSession = Depends(get_db)) -> BulkResult:
    outcome = await bulk_service.apply_same_update_to_many(session, payload.updates, payload.filter)
    await session.commit()
    return BulkResult(matched_count=outcome.matched_count, modified_count=outcome.modified_count)


@router.put("/bulk/different", response_model=BulkResult)
async def bulk_update_different(
    payload: BulkDifferentRequest, session: AsyncSession = Depends(get_db)
) -> BulkResult:
    outcome = await bulk_service.apply_different_updates_to_many(session, payload.updates)
    await session.commit()
    return BulkResult(matched_count=outcome.matched_count, modified_count=outcome.modified_count)


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(user_id: str, session: AsyncSession = Depends(get_db)) -> UserEnvelope:
    user = await user_service.get_user(session, user_id)
    return UserEnvelope(message="User found", user=UserRead.model_validate(user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    user = await user_service.update_user(session, user_id, payload)
    await session.commit()
    return UserEnvelope(message="User updated successfully", user=UserRead.model_validate(user))


@router.delete("/{user_id}", response_model=Message)
async def delete_user(user_id: str, session: AsyncSession = Depends(get_db)) -> Message:
    await user_service.delete_user(session, user_id)
    await session.commit()
    return Message(message="User deleted successfully")
