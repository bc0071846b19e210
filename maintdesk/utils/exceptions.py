# maintdesk/utils/exceptions.py
"""Custom exceptions for Maintdesk"""
from typing import Any, Optional


class MaintdeskException(Exception):
    """Base exception for Maintdesk"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_FAILURE",
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(MaintdeskException):
    """Validation error, optionally with per-field messages"""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", 400, details)

    @classmethod
    def from_pydantic(cls, exc, message: str = "Invalid input") -> "ValidationError":
        """Build from a pydantic ValidationError, one message per field."""
        details = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            details.setdefault(field, error.get("msg", "invalid value"))
        return cls(message, details)


class UnauthorizedError(MaintdeskException):
    """No valid principal"""
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "UNAUTHORIZED", 401)


class ForbiddenError(MaintdeskException):
    """Authenticated but out of scope or role"""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "FORBIDDEN", 403)


class NotFoundError(MaintdeskException):
    """Resource not found"""
    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(message, "NOT_FOUND", 404)


class ConflictError(MaintdeskException):
    """Resource conflict (duplicate, or ticket number race exhausted)"""
    def __init__(self, message: str):
        super().__init__(message, "CONFLICT", 409)


class InternalFailureError(MaintdeskException):
    """Storage unavailable or other unexpected failure"""
    def __init__(self, message: str = "Internal failure"):
        super().__init__(message, "INTERNAL_FAILURE", 500)
