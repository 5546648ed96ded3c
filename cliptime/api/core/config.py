"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (Supabase Postgres)
    database_url: str = Field(..., description="PostgreSQL database URL")

    # YouTube Data API
    youtube_api_key: str = Field(..., description="YouTube Data API v3 key")
    youtube_client_id: str = Field(default="", description="OAuth client id for comment posting")
    youtube_client_secret: str = Field(default="", description="OAuth client secret")
    youtube_refresh_token: str = Field(default="", description="OAuth refresh token of the posting account")

    # Discord
    discord_bot_token: str = Field(default="", description="Discord bot token")
    discord_channel_id: str = Field(
        default="", description="Default Discord channel for clip notifications"
    )
    notification_timeout: float = Field(default=10.0, description="Discord send timeout in seconds")

    # Webhook response
    tool_used: str = Field(default="cliptime", description="Tool name echoed back to chat")

    # Cron secrets
    cron_secret: str = Field(default="", description="Shared secret for cron endpoints")
    cron_secret_dc_keep_alive: str = Field(
        default="", description="Shared secret for the Discord keep-alive endpoint"
    )

    # Discovery worker
    discovery_interval: float = Field(default=1.0, description="Seconds between discovery jobs")
    discovery_queue_size: int = Field(default=100, description="Max pending discovery jobs")

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")

    # Keep-Alive
    enable_keep_alive: bool = Field(default=True, description="Enable heartbeat keep-alive task")
    keep_alive_interval: int = Field(default=300, description="Heartbeat interval in seconds")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
