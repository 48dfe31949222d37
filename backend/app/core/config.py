"""
Application configuration and environment settings.
"""
from decimal import Decimal
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Splitledger"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./splitledger.db"
    DB_ECHO: bool = False

    # CORS
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8080"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Balances
    BALANCE_EPSILON: Decimal = Decimal("0.01")  # Amounts at or below this are treated as settled
    DEFAULT_CATEGORY: str = "Other"
    BALANCE_CACHE_SIZE: int = 256  # Memoized summaries kept in-process, 0 disables
    RECENT_EXPENSE_LIMIT: int = 20  # Dashboard feed length per list

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
