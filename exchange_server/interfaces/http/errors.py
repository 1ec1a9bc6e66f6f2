"""Translate engine rejections into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from exchange_server.modules.accounts import AccountAlreadyExistsError
from exchange_server.modules.common.exceptions import (
    ConcurrencyConflictError,
    ExchangeError,
    InsufficientReserveError,
    InvalidTransitionError,
    NotFoundError,
    RestrictedCustomerError,
    SystemUnavailableError,
    UntradablePairError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[ExchangeError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    UntradablePairError: status.HTTP_400_BAD_REQUEST,
    InsufficientReserveError: status.HTTP_409_CONFLICT,
    RestrictedCustomerError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    SystemUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    AccountAlreadyExistsError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ExchangeError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def exchange_error_handler(request: Request, exc: ExchangeError) -> JSONResponse:
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"code": "internal_error", "message": "An internal error occurred"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ExchangeError, exchange_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)


__all__ = ["STATUS_BY_ERROR", "register_error_handlers", "status_for"]
