"""
Sandbox API exceptions and the handlers that turn them into the response envelope.
"""

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("capkeo")


class SandboxException(Exception):
    """Base exception for the sandbox API."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class MatchNotFoundError(SandboxException):
    """Raised when a match is not found."""

    def __init__(self, match_id: str = None):
        message = "Match not found"
        if match_id:
            message = f"Match '{match_id}' was not found."
        super().__init__(message, status_code=404, code="MATCH_NOT_FOUND")


class InvalidTransitionError(SandboxException):
    """Raised when an action is not allowed from the match's current status."""

    def __init__(self, action: str, status: str):
        super().__init__(
            f"Cannot {action} a match in status {status}",
            status_code=409,
            code="INVALID_TRANSITION",
        )


class AuthenticationError(SandboxException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")


class AuthorizationError(SandboxException):
    """Raised when a team acts on a match it is not part of, or out of turn."""

    def __init__(self, message: str = "This team is not allowed to perform this action"):
        super().__init__(message, status_code=403, code="FORBIDDEN")


def create_error_response(code: str, message: str, details: list = None) -> dict:
    """Create a standardized error envelope."""
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def create_success_response(data) -> dict:
    return {"success": True, "data": data}


async def sandbox_exception_handler(request: Request, exc: SandboxException) -> JSONResponse:
    logger.warning(f"SandboxException: {exc.message} (status: {exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.code, exc.message),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    messages = {
        400: "The request was invalid.",
        401: "Authentication required.",
        403: "You don't have permission to access this resource.",
        404: "The requested resource was not found.",
        405: "This action is not allowed.",
    }
    message = exc.detail if exc.detail else messages.get(exc.status_code, "Unexpected error")
    logger.warning(f"HTTPException: {message} (status: {exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(f"HTTP_{exc.status_code}", str(message)),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body and query validation errors."""
    errors = exc.errors()
    messages = []
    for error in errors:
        field = ".".join(str(loc) for loc in error["loc"])
        messages.append(f"'{field}': {error['msg']}")
    message = "Validation failed: " + "; ".join(messages)

    logger.warning(f"ValidationError: {message}")
    details = [{"field": ".".join(str(loc) for loc in e["loc"]), "message": e["msg"]} for e in errors]
    return JSONResponse(
        status_code=422,
        content=create_error_response("VALIDATION_ERROR", message, details),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=create_error_response("INTERNAL_ERROR", "An unexpected error occurred."),
    )
