"""
Configuration settings for the MarketLens application.

This module loads settings from environment variables and provides
configuration values for the application.
"""

from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    # Environment
    ENV: str = "development"
    DEBUG: bool = True

    # eBay credentials (optional: keys can also be supplied at runtime)
    EBAY_APP_ID: str = ""
    EBAY_CERT_ID: str = ""
    EBAY_ENV: str = "PRODUCTION"
    EBAY_MARKETPLACE_ID: str = "EBAY_US"
    EBAY_REQUEST_TIMEOUT: int = 30

    # API Settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    API_DEBUG: bool = False
    PROJECT_NAME: str = "MarketLens"
    API_PREFIX: str = "/api"

    # CORS Settings
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        """Parse the CORS origins from string to list if needed."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    @field_validator("EBAY_APP_ID", "EBAY_CERT_ID", mode="before")
    @classmethod
    def strip_credentials(cls, v: Optional[str]) -> str:
        """Keys pasted into .env files often carry stray whitespace."""
        return (v or "").strip()

    @field_validator("EBAY_ENV", mode="before")
    @classmethod
    def normalize_env(cls, v: Optional[str]) -> str:
        return (v or "PRODUCTION").strip().upper()

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )


# Create instance of settings to be imported by other modules
settings = Settings()
