"""Configuration management using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # Linnworks application credentials (used only by POST /auth)
    linnworks_application_id: Optional[str] = None
    linnworks_application_secret: Optional[str] = None
    linnworks_token: Optional[str] = None

    # API Configuration
    host_api: str = "https://eu-ext.linnworks.net"
    auth_host: str = "https://api.linnworks.net"
    request_timeout_seconds: float = 30.0

    # Marketplace data files
    marketplace_map_path: Optional[str] = None
    fee_overrides_path: str = "config/fee_overrides.json"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = "development"

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Create a global settings instance
settings = Settings()
