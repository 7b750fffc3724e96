"""
Application settings loaded from environment variables.
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with type safety."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./buildcost.db"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Trusted headers set by the upstream authentication gateway
    USER_ID_HEADER: str = "X-User-Id"
    USER_ROLE_HEADER: str = "X-User-Role"

    # Reject client prices for merchants that have no listed price
    STRICT_MERCHANT_PRICES: bool = False

    # Export
    CURRENCY_SYMBOL: str = "€"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


# Global settings instance
settings = Settings()
