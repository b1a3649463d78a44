"""API router aggregator."""
from fastapi import APIRouter

from rolegate.api.routes import roles, users

api_router = APIRouter(prefix="/api")
api_router.include_router(roles.router)
api_router.include_router(users.router)

__all__ = ["api_router"]
