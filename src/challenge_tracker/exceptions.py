"""
Custom exceptions for the Challenge Tracker.

This module defines the exception hierarchy used at the HTTP boundary and
for defensive input checks in the core. Each exception includes:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging

Business conditions inside the repository (challenge not found, already
logged) are returned as typed outcomes; the service layer converts them to
the exceptions below so routes can map them to HTTP responses.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Challenge errors
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
    CHALLENGE_NOT_ACTIVE = "CHALLENGE_NOT_ACTIVE"
    INVALID_ACTIVITY = "INVALID_ACTIVITY"
    INVALID_DATE = "INVALID_DATE"

    # Log errors
    ALREADY_LOGGED = "ALREADY_LOGGED"
    LOG_NOT_FOUND = "LOG_NOT_FOUND"

    # Store errors
    STORE_ERROR = "STORE_ERROR"


class ChallengeTrackerError(Exception):
    """
    Base exception for all Challenge Tracker errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(ChallengeTrackerError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class InvalidActivityError(ValidationError):
    """Raised when a log names an activity the challenge does not track."""

    def __init__(
        self,
        activity: str,
        allowed: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["activity"] = activity
        if allowed is not None:
            error_details["allowed"] = list(allowed)
        super().__init__(
            message=f"Activity '{activity}' is not part of this challenge",
            field="activity",
            details=error_details,
        )
        self.code = ErrorCode.INVALID_ACTIVITY


class InvalidDateError(ValidationError):
    """Raised when a log date is malformed or outside the challenge window."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field="date", details=details)
        self.code = ErrorCode.INVALID_DATE


# ============================================================================
# Authorization Errors (401 / 403)
# ============================================================================

class UnauthorizedError(ChallengeTrackerError):
    """Raised when the admin token is missing or wrong."""

    def __init__(
        self,
        message: str = "Invalid or missing admin token",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.UNAUTHORIZED,
            status_code=401,
            details=details,
        )


class ChallengeNotActiveError(ChallengeTrackerError):
    """Raised when logging against a challenge that is no longer active."""

    def __init__(
        self,
        challenge_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["challenge_id"] = challenge_id
        error_details["status"] = status
        super().__init__(
            message=f"Cannot log activity for a {status} challenge",
            code=ErrorCode.CHALLENGE_NOT_ACTIVE,
            status_code=403,
            details=error_details,
        )


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(ChallengeTrackerError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class ChallengeNotFoundError(NotFoundError):
    """Raised when a challenge is not found (or has expired)."""

    def __init__(self, challenge_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Challenge",
            resource_id=challenge_id,
            details=details,
        )
        self.code = ErrorCode.CHALLENGE_NOT_FOUND


class LogNotFoundError(NotFoundError):
    """Raised when a log entry with the given timestamp does not exist."""

    def __init__(self, timestamp: int, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Log entry",
            resource_id=str(timestamp),
            details=details,
        )
        self.code = ErrorCode.LOG_NOT_FOUND


# ============================================================================
# Conflict Errors (409)
# ============================================================================

class ConflictError(ChallengeTrackerError):
    """Raised when there's a resource conflict."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


class AlreadyLoggedError(ConflictError):
    """Raised when an activity already has a log for the date outside edit mode."""

    def __init__(
        self,
        activity: str,
        date: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["activity"] = activity
        error_details["date"] = date
        super().__init__(
            message=f"'{activity}' has already been logged for {date}. Try again tomorrow or edit the entry.",
            details=error_details,
        )
        self.code = ErrorCode.ALREADY_LOGGED


# ============================================================================
# Store Errors (500)
# ============================================================================

class StoreError(ChallengeTrackerError):
    """Raised when the key-value store is unreachable or returns bad data."""

    def __init__(
        self,
        message: str = "Key-value store operation failed",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.STORE_ERROR,
            status_code=500,
            details=error_details,
        )
