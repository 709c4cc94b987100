# inventory_api/core/errors.py

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_api.core.config import Settings
from inventory_api.core.logging import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


# =========================================================
# DOMAIN ERRORS
# =========================================================

class InventoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(InventoryError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PluExhaustedError(PersistenceError):
    pass


# Raised and swallowed inside the audit notifier only
class NotificationError(InventoryError):
    pass


# =========================================================
# RESPONSE ENVELOPE
# =========================================================

def error_response(
    status_code: int,
    message: str,
    exc: BaseException | None,
    settings: Settings,
) -> JSONResponse:
    content = {"success": False, "message": message}

    if exc is not None and not settings.is_production:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )

    return JSONResponse(status_code=status_code, content=content)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"{location}: {first.get('msg')}"
    return str(first.get("msg"))


def register_exception_handlers(app: FastAPI, settings: Settings):

    @app.exception_handler(InventoryError)
    async def handle_inventory_error(request: Request, exc: InventoryError):
        return error_response(exc.status_code, exc.message, exc, settings)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Not Found - {request.url.path}"
        else:
            message = str(exc.detail)
        return error_response(exc.status_code, message, None, settings)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            _first_validation_message(exc),
            None,
            settings,
        )

    # Called synchronously by SlowAPIMiddleware
    @app.exception_handler(RateLimitExceeded)
    def handle_rate_limit(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded: {request.method} {request.url.path}")
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            f"Rate limit exceeded: {exc.detail}",
            None,
            settings,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(exc) or "Internal Server Error",
            exc,
            settings,
        )
