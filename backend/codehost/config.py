"""Application configuration."""

import secrets
from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "development"  # development, staging, production

    # Development mode (generates throwaway secrets) - MUST be False in production
    dev_mode: bool = False

    # Database (SQLite default is safe for dev; production must set a real connection string)
    database_url: str = "sqlite+aiosqlite:///./codehost.db"

    # Secret used to encrypt the OAuth correlation state. Loaded once per process.
    codehost_state_secret: Optional[str] = None

    # Lifetime of an OAuth state token in seconds (0 disables expiry)
    codehost_state_ttl_seconds: int = 600

    # Timeout for token exchange calls against code hosts
    oauth_http_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def _set_dev_defaults(self) -> "Settings":
        """Generate a random state secret in dev mode; require it otherwise."""
        if self.dev_mode:
            if not self.codehost_state_secret:
                self.codehost_state_secret = secrets.token_hex(32)
        elif not self.codehost_state_secret:
            raise ValueError(
                "Missing required secret (set DEV_MODE=true for development): CODEHOST_STATE_SECRET"
            )
        return self

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def state_ttl(self) -> int | None:
        """State token lifetime, or None when expiry is disabled."""
        return self.codehost_state_ttl_seconds or None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
