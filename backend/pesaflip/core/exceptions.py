"""
Secure exception handling to prevent information leakage.

SECURITY PRINCIPLE: Don't expose internal details to users.
Use generic error messages externally, detailed logging internally.

Every error leaves the API in the same envelope the dashboard expects:

    {"success": false, "error": {"code": 400, "message": "...", "details": {...}}}
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying an optional structured ``details`` payload."""

    def __init__(self, status_code: int, message: str, details: Any = None, headers: Optional[dict] = None):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.details = details

    @property
    def message(self) -> str:
        return str(self.detail)


class BusinessError:
    """Business-domain exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> ApiError:
        """
        404 that doesn't confirm whether another user's resource exists.

        Returns the same response whether the row is missing or owned by
        someone else, so ids cannot be enumerated.
        """
        if reason:
            logger.warning(f"Access denied / not found: {resource} - {reason}")
        return ApiError(status.HTTP_404_NOT_FOUND, f"{resource} not found")

    @staticmethod
    def unauthorized(message: str = "Authentication required", reason: str = "") -> ApiError:
        logger.warning(f"Unauthorized access attempt: {reason or message}")
        return ApiError(
            status.HTTP_401_UNAUTHORIZED,
            message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(message: str = "Access denied", reason: str = "") -> ApiError:
        logger.warning(f"Forbidden access: {reason or message}")
        return ApiError(status.HTTP_403_FORBIDDEN, message)

    @staticmethod
    def bad_request(message: str, details: Any = None) -> ApiError:
        """
        400 for input validation / business rule errors.

        OK to include specifics here since the caller caused the issue.
        Examples: "Amount must be a positive number", "Insufficient funds"
        """
        logger.info(f"Bad request: {message}")
        return ApiError(status.HTTP_400_BAD_REQUEST, message, details)

    @staticmethod
    def conflict(message: str, details: Any = None) -> ApiError:
        logger.info(f"Conflict: {message}")
        return ApiError(status.HTTP_409_CONFLICT, message, details)

    @staticmethod
    def service_unavailable(message: str) -> ApiError:
        logger.warning(f"Service unavailable: {message}")
        return ApiError(status.HTTP_503_SERVICE_UNAVAILABLE, message)

    @staticmethod
    def server_error(original_error: Exception = None, message: str = "An internal error occurred. Please try again later.") -> ApiError:
        """
        Generic 500 - logs actual error internally, hides from user.

        SECURITY: Never expose stack traces, SQL errors, or internal paths to users.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {original_error}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred")
        return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Wrap route output in the success envelope."""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def error_body(status_code: int, message: str, details: Any = None) -> dict:
    error = {"code": status_code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    details = getattr(exc, "details", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail), details),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    logger.info(f"Validation failed on {request.method} {request.url.path}: {fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(status.HTTP_400_BAD_REQUEST, "Validation failed", fields),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
