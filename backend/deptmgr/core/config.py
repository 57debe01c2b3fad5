"""
Application configuration using Pydantic BaseSettings.
Loads environment variables and provides typed configuration.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project metadata
    PROJECT_NAME: str = "Department Hierarchy Service"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Remote user directory API
    DIRECTORY_API_BASE_URL: str = "http://localhost:8000/api/"
    DIRECTORY_API_TOKEN: str = ""
    ADMIN_API_KEY: str = ""
    DIRECTORY_API_TIMEOUT: int = 10
    DIRECTORY_API_MAX_RETRIES: int = 3
    DIRECTORY_API_RETRY_DELAY: float = 1.0

    # Directory listing
    ROWS_PAGE_SIZE: int = 15
    LOAD_DIRECTORY_ON_STARTUP: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
