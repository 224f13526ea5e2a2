"""NUDGE — Exception Hierarchy.

Every error the service raises on purpose derives from NudgeError so the
HTTP layer can map it to a structured JSON response.
"""

from typing import Optional


class NudgeError(Exception):
    """Base exception for all NUDGE errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class BackendError(NudgeError):
    """A backing store or gateway call failed (DynamoDB, SQL, FCM)."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None,
    ):
        self.service = service
        super().__init__(message, details, original_error)


class PushGatewayError(BackendError):
    """The push gateway rejected a whole batch."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        original_error: Optional[Exception] = None,
    ):
        self.status_code = status_code
        details = {"status_code": status_code} if status_code else None
        super().__init__(message, "fcm", details, original_error)


class ValidationError(NudgeError):
    """Required input is missing or malformed."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        details = {"missing": missing} if missing else None
        super().__init__(message, details)


class NotFoundError(NudgeError):
    """Requested record does not exist."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        details = {}
        if identifier:
            details["id"] = identifier
        super().__init__(message, details)


class CampaignStateError(NudgeError):
    """Illegal campaign lifecycle transition."""
    pass
