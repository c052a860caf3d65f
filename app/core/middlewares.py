from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import traceback
from typing import Any, Dict, Optional

from app.core.exceptions import AppBaseException
from app.core.logging import get_logger

logger = get_logger("errors")


def error_response(status_code: int, message: str, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """Every failure leaves the API in this envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "details": details or {}
        }
    )


async def exception_handler(request: Request, exception: Exception) -> JSONResponse:
    """
    Render an exception raised while serving a request.

    `AppBaseException` subclasses keep their status code and message. Anything
    else is a 500 and gets logged with its stack trace.
    """
    request_log = logger.bind(
        request_path=request.url.path,
        request_method=request.method,
        client_host=request.client.host if request.client else "unknown"
    )

    if isinstance(exception, AppBaseException):
        log = request_log.error if exception.status_code >= 500 else request_log.warning
        log(
            f"{request.method} {request.url.path} -> {exception.status_code}: {exception.message}",
            extra={"status_code": exception.status_code, "details": exception.details}
        )
        return error_response(exception.status_code, exception.message, exception.details)

    exception_type = type(exception).__name__
    request_log.error(
        f"Unhandled {exception_type} on {request.method} {request.url.path}: {exception}",
        extra={
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "exception_type": exception_type,
            "stacktrace": traceback.format_exc()
        }
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"Unexpected error: {exception_type}",
        {"error": str(exception)}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render body/query validation failures as 400 with the usual error envelope.
    """
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"Invalid request: {field}: {message}"

    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {message}",
        extra={"request_path": request.url.path, "errors": errors}
    )
    return error_response(status.HTTP_400_BAD_REQUEST, message, {"errors": errors})


class ErrorHandlingMiddleware:
    """
    Last line of defence for exceptions that escape the route handlers.
    """
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = await exception_handler(Request(scope, receive=receive), exc)
            await response(scope, receive, send)
