"""
Error taxonomy and JSON error responses

Every error leaving the service is a JSON object with a human-readable
``error`` field. Handlers registered here are the only place exceptions are
turned into HTTP responses.
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AlexzoError(Exception):
    """Base class for errors mapped to an HTTP status"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AlexzoError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AlexzoError):
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(AlexzoError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AlexzoError):
    status_code = 404
    default_message = "Not found"


class MethodNotAllowed(AlexzoError):
    status_code = 405
    default_message = "Method not allowed"


class ConflictError(AlexzoError):
    status_code = 409
    default_message = "Conflict"


class RateLimitExceeded(AlexzoError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class ServiceUnconfigured(AlexzoError):
    status_code = 503
    default_message = "Service not configured"


class UpstreamError(AlexzoError):
    """Upstream provider answered with a non-success status"""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or "Upstream request failed")
        self.status_code = status_code


class InternalError(AlexzoError):
    status_code = 500


def error_response(status_code: int, message: str,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def alexzo_error_handler(request: Request, exc: AlexzoError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        message = "Method not allowed"
    elif isinstance(exc.detail, str):
        message = exc.detail
    else:
        message = "Request failed"
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
    else:
        message = "Invalid request"
    return error_response(400, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application"""
    app.add_exception_handler(AlexzoError, alexzo_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
