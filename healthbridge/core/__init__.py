from healthbridge.core.exceptions import (
    HealthBridgeException,
    ValidationError,
    PermissionDeniedError,
    StoreUnavailableError,
    PlatformError,
)

__all__ = [
    "HealthBridgeException",
    "ValidationError",
    "PermissionDeniedError",
    "StoreUnavailableError",
    "PlatformError",
]
