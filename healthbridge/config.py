from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HEALTHBRIDGE_", env_file=".env", extra="ignore")

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # App settings
    app_name: str = "HealthBridge"

    # Health record store
    store_backend: Literal["sql", "unavailable"] = "sql"
    database_url: str = "sqlite:///./healthbridge.db"
    store_read_only: bool = False

    # Data origin stamped on records this service writes
    data_origin: str = "app.healthbridge"

    # Grants every missing permission when a consent flow is started.
    # Development only; the user grants through the platform UI otherwise.
    auto_grant_permissions: bool = False

    # Query defaults
    default_query_limit: int = 100
    default_lookback_hours: int = 24

    # Paging
    default_page_size: int = 100
    max_page_size: int = 500

    # Logging
    log_level: str = "INFO"

    @property
    def debug(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.environment == "development"

    def validate_production_settings(self) -> None:
        """Validate that production settings are safe."""
        if self.environment == "production":
            if self.auto_grant_permissions:
                raise ValueError("AUTO_GRANT_PERMISSIONS must be disabled in production")
        if self.default_page_size <= 0 or self.max_page_size <= 0:
            raise ValueError("Page sizes must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.validate_production_settings()
    return settings
