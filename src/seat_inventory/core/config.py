"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Optional, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./seat_inventory.db"
    DATABASE_ECHO: bool = False

    # Application
    APP_NAME: str = "Seat Inventory Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Identity provider (JWT verification)
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    TOKEN_AUDIENCE: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Reservations
    HOLD_DURATION_MINUTES: int = 15
    MAX_SEATS_PER_ORDER: int = 10

    # Background workers
    EXPIRY_SWEEP_ENABLED: bool = True
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 30

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_FILE: Optional[str] = None

    # CORS
    CORS_ORIGINS: Union[List[str], str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @field_validator('HOLD_DURATION_MINUTES', 'MAX_SEATS_PER_ORDER', 'EXPIRY_SWEEP_INTERVAL_SECONDS')
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        case_sensitive = True
        extra = 'ignore'


# Global settings instance
settings = Settings()
