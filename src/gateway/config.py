"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.gateway.errors import ConfigurationError


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    SHUTDOWN_TIMEOUT_SECONDS: float = 10.0

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Frontend assets served verbatim at /
    STATIC_DIR: str = "public"

    # HubSpot CRM (Private App token)
    HUBSPOT_ACCESS_TOKEN: str = ""
    HUBSPOT_API_BASE: str = "https://api.hubapi.com"
    HUBSPOT_TIMEOUT: float = 10.0
    HUBSPOT_DEAL_CONTACT_ASSOCIATION_TYPE_ID: int = 3  # deal -> contact
    HUBSPOT_DEAL_CONTACT_ASSOCIATION_CATEGORY: str = "HUBSPOT_DEFINED"

    # LLM Provider
    OPENAI_API_KEY: str = ""
    SUMMARY_MODEL: str = "gpt-4.1-mini"
    LLM_TIMEOUT: int = 30

    # Monitoring
    SENTRY_DSN: str = ""

    def require_crm_token(self) -> str:
        """Return the HubSpot token, raising ConfigurationError when it is blank."""
        token = self.HUBSPOT_ACCESS_TOKEN.strip()
        if not token:
            raise ConfigurationError(
                "HUBSPOT_ACCESS_TOKEN not found in .env file. "
                "Please create a .env file and add your HubSpot Private App token"
            )
        return token


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
