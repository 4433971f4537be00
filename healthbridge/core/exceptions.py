"""Custom exception classes for the health record engine."""

from typing import Any, Optional


class HealthBridgeException(Exception):
    """Base exception for the health record engine."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(HealthBridgeException):
    """Input validation error. Never reaches the store."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details={"field": field},
        )


class PermissionDeniedError(HealthBridgeException):
    """A required store permission has not been granted."""

    def __init__(self, message: str = "Permission denied", permission: Optional[str] = None):
        super().__init__(
            message=message,
            code="PERMISSION_DENIED",
            status_code=403,
            details={"permission": permission} if permission else None,
        )


class StoreUnavailableError(PermissionDeniedError):
    """The health record store is not available on this platform."""

    def __init__(self, reason: str):
        super().__init__(message=reason)
        self.code = "STORE_UNAVAILABLE"
        self.status_code = 503


class PlatformError(HealthBridgeException):
    """The store operation itself failed. Carries the store's message verbatim."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message=message,
            code="PLATFORM_ERROR",
            status_code=502,
            details={"operation": operation} if operation else None,
        )
