"""Role management endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.dependencies import get_db
from rolegate.schemas.common import Message, Pagination
from rolegate.schemas.role import RoleCreate, RoleEnvelope, RoleList, RoleQuery, RoleRead, RoleUpdate
from rolegate.services import roles as role_service

router = APIRouter(prefix="/roles", tags=["roles"])


@router.post("", response_model=RoleEnvelope, status_code=status.HTTP_201_CREATED)
async def create_role(payload: RoleCreate, session: AsyncSession = Depends(get_db)) -> RoleEnvelope:
    role = await role_service.create_role(session, payload)
    await session.commit()
    return RoleEnvelope(message="Role created successfully", role=RoleRead.model_validate(role))


@router.get("", response_model=RoleList)
async def list_roles(
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    active: bool | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> RoleList:
    query = RoleQuery(search=search, page=page, limit=limit, active=active)
    result = await role_service.list_roles(session, query)
    return RoleList(
        roles=[RoleRead.model_validate(role) for role in result.items],
        pagination=Pagination.build(query, result.total),
    )


@router.get("/{role_id}", response_model=RoleRead)
async def get_role(role_id: str, session: AsyncSession = Depends(get_db)) -> RoleRead:
    role = await role_service.get_role(session, role_id)
    return RoleRead.model_validate(role)


@router.put("/{role_id}", response_model=RoleEnvelope)
async def update_role(
    role_id: str,
    payload: RoleUpdate,
    session: AsyncSession = Depends(get_db),
) -> RoleEnvelope:
    role = await role_service.update_role(session, role_id, payload)
    await session.commit()
    return RoleEnvelope(message="Role updated successfully", role=RoleRead.model_validate(role))


@router.delete("/{role_id}", response_model=Message)
async def delete_role(role_id: str, session: AsyncSession = Depends(get_db)) -> Message:
    await role_service.delete_role(session, role_id)
    await session.commit()
    return Message(message="Role deleted successfully")
