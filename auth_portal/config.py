"""
Configuration Management
Environment-based settings for the auth provider, payment API and logging
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Process-wide settings, read once at startup"""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    # Service info
    service_name: str = "auth-portal"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Public site URL used for OAuth redirects
    site_url: str = "http://localhost:3000"

    # Supabase auth provider
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Creem payment API
    creem_api_url: Optional[str] = None
    creem_api_key: Optional[str] = None
    creem_success_url: Optional[str] = None

    # Session cookies
    cookie_secure: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"
    log_config_path: Optional[str] = None

    @field_validator('site_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')

    @field_validator('supabase_url', 'supabase_anon_key', 'creem_api_url', 'creem_api_key', 'creem_success_url')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @property
    def supabase_configured(self) -> bool:
        """Auth provider URL and anon key are both present"""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def creem_configured(self) -> bool:
        """Payment API URL and key are both present"""
        return bool(self.creem_api_url and self.creem_api_key)

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(f"Environment: {self.environment}")
        logger.info(f"Site URL: {self.site_url}")
        logger.info(f"Supabase: {'configured' if self.supabase_configured else 'not configured (mock mode)'}")
        logger.info(f"Creem API: {self.creem_api_url if self.creem_configured else 'not configured'}")
        logger.info(f"Checkout success URL override: {'Yes' if self.creem_success_url else 'No'}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get settings instance"""
    return Settings()
