"""
Application configuration and settings.
Centralized configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Relay settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        env_file=[".env", ".env.local"],  # .env.local overrides .env
    )

    # Application settings
    app_name: str = "MR Relay"
    environment: str = Field(default="local", validation_alias="SYSTEM_ENVIRONMENT")
    host: str = "0.0.0.0"
    port: int = 8787

    # Upstream provider; the relay refuses to start without a key
    openai_api_key: str = Field(min_length=1)
    openai_base_url: str = "https://api.openai.com/v1"
    upstream_timeout_seconds: float = Field(default=60.0, gt=0)

    # Models
    default_model: str = "gpt-4o-mini"
    realtime_model: str = "gpt-4o-realtime-preview"
    tts_model: str = "gpt-4o-mini-tts"
    tts_default_voice: str = "verse"
    stt_model: str = "gpt-4o-transcribe"

    # Admission policy
    allowed_origins: str = ""
    rate_limit_per_minute: int = Field(default=120, ge=0)
    trust_proxy_headers: bool = False
    max_json_body_bytes: int = Field(default=2 * MIB, gt=0)
    max_audio_bytes: int = Field(default=20 * MIB, gt=0)

    # Logging settings
    log_level: str = "INFO"
    enable_request_logging: bool = True

    @property
    def allowed_origin_list(self) -> List[str]:
        """Comma-separated ALLOWED_ORIGINS as a list; empty means no restriction."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
