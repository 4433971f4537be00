from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from healthbridge.api.routes import health
from healthbridge.config import get_settings
from healthbridge.core.error_handlers import (
    generic_exception_handler,
    healthbridge_exception_handler,
    pydantic_validation_handler,
)
from healthbridge.core.exceptions import HealthBridgeException
from healthbridge.core.logging import get_logger, setup_logging
from healthbridge.core.middleware import RequestLoggingMiddleware
from healthbridge.services.health import package_version

settings = get_settings()

setup_logging(debug=settings.debug, log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        store_backend=settings.store_backend,
    )
    if settings.store_backend == "sql":
        from healthbridge.database import init_db

        init_db()
        logger.info("database_initialized")

    yield

    logger.info("application_shutdown")


app = FastAPI(
    title=settings.app_name,
    description="Unified health data access over a permissioned record store",
    version=package_version(),
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
)

app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(HealthBridgeException, healthbridge_exception_handler)
app.add_exception_handler(RequestValidationError, pydantic_validation_handler)
app.add_exception_handler(PydanticValidationError, pydantic_validation_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(health.router, prefix="/api/health", tags=["health"])


@app.get("/")
async def root():
    return {"message": f"{settings.app_name} API", "version": package_version()}


@app.get("/health/live")
async def liveness():
    """Liveness probe. Does not touch the store."""
    return {"status": "alive"}
