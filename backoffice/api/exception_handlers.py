"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backoffice.errors import (
    INTERNAL_ERROR,
    VALIDATION_ERROR,
    ConfigurationError,
    DomainError,
    DomainValidationError,
    ForbiddenError,
    GoneError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    NotificationError,
    ServerError,
    UnauthorizedError,
)
from backoffice.schemas.error import ErrorResponse, GoneErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[DomainError], int] = {
    DomainValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    GoneError: status.HTTP_410_GONE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    NotificationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)

    if isinstance(exc, ServerError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        body = ErrorResponse(message=exc.public_message, code=exc.code)
    elif isinstance(exc, GoneError):
        body = GoneErrorResponse(
            message=str(exc),
            code=exc.code,
            redirect_to_forgot=exc.redirect_to_forgot,
        )
    else:
        body = ErrorResponse(message=str(exc), code=exc.code)

    return _error_response(status_code, body)


def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(message="Invalid request body", code=VALIDATION_ERROR),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s raised an unhandled error", request.method, request.url.path, exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(message=InternalError.public_message, code=INTERNAL_ERROR),
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
