"""
Core configuration module for the Trip Planner backend.
Settings are loaded from environment variables (or a local .env file).
"""

from pydantic_settings import BaseSettings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Defaults are suitable for a single-user local deployment on SQLite.
    """

    # Application
    app_name: str = "Trip Planner"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./trip_planner.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_recycle: int = 1800  # Recycle connections after 30 min
    database_pool_pre_ping: bool = True  # Verify connections before use

    # API Configuration
    api_prefix: str = "/api"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 1

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    # CORS
    cors_origins: list = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_credentials: bool = False
    cors_allow_methods: list = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: list = ["Content-Type", "Accept", "X-Request-ID"]

    # Default trip, reused when a trip whose title contains the keyword exists
    default_trip_title: str = "태국 푸켓 여행"
    default_trip_keyword: str = "푸켓"
    default_trip_description: Optional[str] = "4일간의 태국 푸켓 여행"
    default_trip_start: str = "2025-08-13"
    default_trip_end: str = "2025-08-16"

    # Budget (KRW)
    budget_krw: float = 3_000_000

    # Exchange rates, KRW per THB: expense ledger and standalone calculator
    expense_thb_to_krw_rate: float = 43.0
    calculator_thb_to_krw_rate: float = 38.5

    # Rate limits (slowapi syntax)
    read_rate_limit: str = "300/minute"
    write_rate_limit: str = "120/minute"
    health_rate_limit: str = "1000/minute"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
