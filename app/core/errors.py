from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.issues import Issue, SchemaError
from app.schemas.errors import ErrorBody, ErrorDetails

logger = logging.getLogger(__name__)


class EngineError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> ErrorBody:
        return ErrorBody(error=self.message)


class ValidationError(EngineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, issues: list[Issue], message: str | None = None):
        super().__init__(message)
        self.issues = list(issues)

    def to_body(self) -> ErrorBody:
        field_errors = SchemaError(self.issues).flatten()["fieldErrors"]
        return ErrorBody(error=self.message, details=ErrorDetails(fieldErrors=field_errors))


class AuthorizationError(EngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(EngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Record not found"


class UnknownEntityError(NotFoundError):
    default_message = "Unknown entity"


class ConflictError(EngineError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Stale version: the record was modified by someone else"


class UnsupportedOperationError(EngineError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Operation not supported for this entity"


class StoreError(EngineError):
    default_message = "Internal Server Error"


def _render(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, exclude_none=True),
    )


async def _engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error(
            "Store failure path=%s cause=%r",
            request.url.path,
            exc.__cause__,
            exc_info=exc,
        )
    return _render(exc.status_code, exc.to_body())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _render(exc.status_code, ErrorBody(error=detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _render(status.HTTP_400_BAD_REQUEST, ErrorBody(error="Malformed request"))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error: %s path=%s", exc, request.url.path, exc_info=exc)
    return _render(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorBody(error="Internal Server Error"))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EngineError, _engine_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
