"""Global exception handlers for the FastAPI application.

The generic controller writes its own 400/404 replies. These handlers
cover everything raised outside of it (pre-request hooks, custom
processors, body decoding, unexpected failures) and answer with the same
body shapes: ``{"errors": [...]}`` for validation failures and
``{"message": ...}`` for everything else.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from crudkit.api.schemas.errors import ErrorsResponse, MessageResponse
from crudkit.api.utils.responses import ORJSONResponse
from crudkit.core.config import get_settings
from crudkit.core.context import RequestContext
from crudkit.core.exceptions import (
    CrudkitError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


def _status_for(exc: CrudkitError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, UnauthorizedError):
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def crudkit_error_handler(request: Request, exc: Exception) -> Response:
    """Handle CrudkitError exceptions.

    Args:
        request: The FastAPI request that caused the exception
        exc: The CrudkitError exception to handle

    Returns:
        Response: ORJSONResponse with ``errors`` or ``message``

    Raises:
        TypeError: If exc is not a CrudkitError instance
    """
    if not isinstance(exc, CrudkitError):
        raise TypeError(f"Expected CrudkitError, got {type(exc).__name__}")

    log = logger.warning if exc.is_expected else logger.error
    log(
        "Handling {}: {}",
        type(exc).__name__,
        exc.message,
        correlation_id=RequestContext.get_correlation_id(),
        request_method=request.method,
        request_path=request.url.path,
        error_code=exc.error_code,
    )

    body: ErrorsResponse | MessageResponse
    if isinstance(exc, ValidationError):
        body = ErrorsResponse(errors=exc.errors)
    else:
        body = MessageResponse(message=exc.message)

    return ORJSONResponse(status_code=_status_for(exc), content=body.model_dump())


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError raised while resolving hooks.

    Each error becomes one ``"<location>: <message>"`` entry.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    errors = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ())[1:]) or "request"
        errors.append(f"{location}: {error.get('msg', 'Invalid value')}")

    logger.warning(
        "Request validation failed",
        correlation_id=RequestContext.get_correlation_id(),
        path=request.url.path,
        method=request.method,
        validation_errors=errors,
    )

    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorsResponse(errors=errors).model_dump(),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException, including 404/405 for unbound routes.

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    logger.warning(
        "HTTP exception",
        correlation_id=RequestContext.get_correlation_id(),
        status=exc.status_code,
        method=request.method,
        path=request.url.path,
        detail=exc.detail,
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle generic exceptions.

    In production, hides internal error details from clients.
    """
    settings = get_settings()

    logger.exception(
        "Unhandled exception: {}",
        type(exc).__name__,
        correlation_id=RequestContext.get_correlation_id(),
        request_method=request.method,
        request_path=request.url.path,
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
    else:
        message = f"Internal server error: {type(exc).__name__}: {exc}"

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=MessageResponse(message=message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(CrudkitError, crudkit_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
