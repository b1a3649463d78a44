"""Map service and store exceptions onto JSON error responses."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from rolegate.core.errors import IdentityError, StoreError
from rolegate.db.errors import translate_store_error
from rolegate.services.validation import error_from_details

logger = logging.getLogger(__name__)


def _render(error: IdentityError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def identity_error_handler(_: Request, exc: IdentityError) -> JSONResponse:
    return _render(exc)


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _render(error_from_details(exc.errors()))


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    error = translate_store_error(exc, "user" if "/users" in request.url.path else "role")
    if isinstance(error, StoreError):
        logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return _render(error)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _render(StoreError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
