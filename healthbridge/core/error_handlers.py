"""Global exception handlers for the FastAPI application."""

import logging
from typing import Union

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from healthbridge.core.exceptions import HealthBridgeException

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, details: dict) -> dict:
    return {"error": {"code": code, "message": message, "details": details}}


async def healthbridge_exception_handler(
    request: Request, exc: HealthBridgeException
) -> JSONResponse:
    """Handle all HealthBridgeException subclasses."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "HealthBridgeException: %s - %s",
        exc.code,
        exc.message,
        extra={
            "error_code": exc.code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
    )


async def pydantic_validation_handler(
    request: Request, exc: Union[PydanticValidationError, RequestValidationError]
) -> JSONResponse:
    """Handle request body validation errors with the same envelope."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})

    logger.warning(
        "Validation error: %s",
        errors,
        extra={"path": request.url.path, "method": request.method},
    )

    return JSONResponse(
        status_code=422,
        content=error_body("VALIDATION_ERROR", "Request validation failed", {"errors": errors}),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unhandled exception: %s",
        str(exc),
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred", {}),
    )
