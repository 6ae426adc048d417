from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from holiday_tracker.services.validation import Rejection

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    code: str | None = None
    detail: str | None = None
    details: Any = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(self.message)


# Rejection codes whose HTTP status differs from their category's default.
_STATUS_BY_CODE = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DATE_OVERLAP": status.HTTP_409_CONFLICT,
    "INVALID_DATE": status.HTTP_422_UNPROCESSABLE_ENTITY,
}

_STATUS_BY_CATEGORY = {
    "input": status.HTTP_400_BAD_REQUEST,
    "business": status.HTTP_400_BAD_REQUEST,
    "authorization": status.HTTP_403_FORBIDDEN,
}


class RejectionError(AppError):
    """A structured engine rejection surfaced to an HTTP caller."""

    def __init__(self, rejection: Rejection) -> None:
        self.rejection = rejection
        details = dict(rejection.details)
        if rejection.field is not None:
            details.setdefault("field", rejection.field)
        super().__init__(
            rejection.message,
            status_code=_STATUS_BY_CODE.get(
                rejection.code.value, _STATUS_BY_CATEGORY.get(rejection.category.value, status.HTTP_400_BAD_REQUEST)
            ),
            code=rejection.code.value,
            details=details or None,
        )

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> RejectionError:
        return cls(rejection)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unhandled application error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            code=exc.code,
            detail=exc.message,
            details=exc.details,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            code="INVALID_INPUT",
            detail="Request validation failed",
            details=jsonable_encoder(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
