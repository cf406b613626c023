"""Bot configuration"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# === Path Configuration ===
PACKAGE_DIR = Path(__file__).parent.parent
PROJECT_DIR = PACKAGE_DIR.parent

BOT_NAME = "guardianbot"
BOT_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Bot settings, read from the environment and ``.env``"""

    model_config = SettingsConfigDict(
        env_file=PROJECT_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_bot_token: str = Field(..., description="Discord bot token")

    # Bungie.net
    bungie_api_key: str = Field(..., description="Bungie.net application API key")
    bungie_client_id: str = Field(..., description="Bungie.net OAuth client ID")
    bungie_client_secret: str = Field(..., description="Bungie.net OAuth client secret")

    # Database
    database_url: str = Field(..., description="PostgreSQL database URL")
    database_max_connections: int = Field(
        default=1, ge=1, description="Upper bound on pooled database connections"
    )

    # Sync jobs
    sync_interval_seconds: float = Field(
        default=60.0, gt=0, description="Seconds between two sync ticks"
    )
    nickname_sync_max_concurrency: int = Field(
        default=0,
        ge=0,
        description="Guilds processed at once by the nickname sync (0 = one task per guild)",
    )

    # Health server
    health_enabled: bool = Field(default=True, description="Serve /health and /status")
    health_host: str = Field(default="0.0.0.0", description="Health server host")
    health_port: int = Field(default=8080, description="Health server port")

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL starts with postgresql://"""
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError("DATABASE_URL must start with 'postgresql://'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
