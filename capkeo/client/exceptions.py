"""
Client exceptions with user-facing messages.

Default messages are Vietnamese because they are shown to end users as-is when the
server does not send its own message.
"""

from typing import Dict, List, Optional

from pydantic import ValidationError


class CapkeoError(Exception):
    """Base exception for the CapKeo client."""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class APIRequestError(CapkeoError):
    """Raised when the API answers with an error status or `success: false`."""

    def __init__(
        self, message: str, status_code: int = 500, code: str = None, details: dict = None
    ):
        details = dict(details or {})
        if code:
            details["code"] = code
        super().__init__(message, status_code=status_code, details=details)

    @property
    def code(self) -> Optional[str]:
        return self.details.get("code")


class APIConnectionError(CapkeoError):
    """Raised when the API cannot be reached at all."""

    def __init__(self, message: str = "Không thể kết nối tới máy chủ"):
        super().__init__(message, status_code=503)


class MatchNotFoundError(APIRequestError):
    """Raised when a match is not found."""

    def __init__(self, match_id: str = None, message: str = None):
        if message is None:
            message = "Không tìm thấy trận đấu"
            if match_id:
                message = f"Không tìm thấy trận đấu '{match_id}'"
        super().__init__(message, status_code=404, code="MATCH_NOT_FOUND")


class InvalidTransitionError(CapkeoError):
    """Raised when an action is not allowed from the match's current status."""

    def __init__(self, action: str, status: str, match_id: str = None, match_type: str = None):
        state = status if match_type is None else f"{status} ({match_type})"
        message = f"Cannot {action} a match in status {state}"
        if match_id:
            message = f"Cannot {action} match '{match_id}' in status {state}"
        super().__init__(
            message,
            status_code=409,
            details={
                "action": action,
                "status": status,
                "type": match_type,
                "match_id": match_id,
            },
        )


class ValidationException(CapkeoError):
    """Raised for invalid outbound payloads, with a readable message."""

    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "ValidationException":
        messages = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            messages.append(f"'{field}': {error['msg']}")
        first_field = None
        if exc.errors():
            first_field = ".".join(str(loc) for loc in exc.errors()[0]["loc"])
        return cls("Validation failed: " + "; ".join(messages), field=first_field)


class ScheduleUnavailableError(CapkeoError):
    """Raised when every concurrent fetch of a schedule load failed."""

    def __init__(self, errors: Dict[str, str], message: str = None):
        if message is None:
            message = "Không thể tải lịch thi đấu. Vui lòng thử lại."
        super().__init__(message, status_code=503, details={"errors": errors})

    @property
    def failed_buckets(self) -> List[str]:
        return list(self.details.get("errors", {}).keys())


def error_message(exc: BaseException, default: str) -> str:
    """Message to show for an exception, falling back to a localized default."""
    message = getattr(exc, "message", None) or str(exc)
    return message or default
