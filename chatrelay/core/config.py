"""
Configuration management for the chat relay.

Handles environment-based configuration for development and production.
"""
import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Debug - handle non-boolean values gracefully
    debug: bool = False

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        """Parse debug from environment, handling non-boolean values."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes")
        debug_env = os.getenv("DEBUG", "false").lower()
        return debug_env in ("true", "1", "yes")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("PORT", "3000"))

    # CORS
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

    # Presence: participants silent for longer than the threshold are evicted by the reaper
    staleness_threshold_seconds: float = float(os.getenv("STALENESS_THRESHOLD", "30"))
    reaper_interval_seconds: float = float(os.getenv("REAPER_INTERVAL", "5"))

    # History: 0 keeps every message until cleared
    history_limit: int = int(os.getenv("HISTORY_LIMIT", "500"))

    # WebSocket delivery
    send_timeout_seconds: float = float(os.getenv("SEND_TIMEOUT", "5"))
    max_frame_size: int = int(os.getenv("MAX_FRAME_SIZE", str(256 * 1024)))

    class Config:
        # Load .env from project root (chatrelay/core/config.py -> parent.parent.parent)
        env_file = str(Path(__file__).resolve().parent.parent.parent / ".env")
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
