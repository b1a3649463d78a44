"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rolegate.api import api_router
from rolegate.core.config import get_settings
from rolegate.core.exception_handlers import register_exception_handlers
from rolegate.core.logger import configure_logging
from rolegate.db.session import create_schema, engine

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    await create_schema()
    logger.info("Database schema ready")
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Application shutdown")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}
