"""Translate domain and infrastructure failures into JSON responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cashdesk.core.exceptions import CashDeskError, SecondFactorConfigurationError

logger = logging.getLogger(__name__)

CATEGORY_STATUS = {
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "state_conflict": status.HTTP_409_CONFLICT,
    "authorization": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "second_factor": status.HTTP_401_UNAUTHORIZED,
}


def status_for(exc: CashDeskError) -> int:
    if isinstance(exc, SecondFactorConfigurationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return CATEGORY_STATUS.get(exc.category, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def cashdesk_error_handler(request: Request, exc: CashDeskError) -> JSONResponse:
    payload = exc.to_dict()
    payload["category"] = exc.category
    return JSONResponse(status_code=status_for(exc), content={"error": payload})


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database failure while handling %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": {
                "code": "internal_error",
                "message": "The service is temporarily unavailable",
                "category": "internal",
                "retryable": True,
            }
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CashDeskError, cashdesk_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)


__all__ = ["CATEGORY_STATUS", "register_exception_handlers", "status_for"]
