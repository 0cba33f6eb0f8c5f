"""
Configuration settings for the Product Page Optimizer.

Uses pydantic-settings for robust configuration management with environment
variable support and validation.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Environment
    environment: str = Field(default="production", description="Runtime environment")

    # Extraction Pipeline Configuration
    extractor_timeout: float = Field(
        default=5.0, description="Per-extractor timeout in seconds"
    )
    min_confidence: float = Field(
        default=0.0, description="Minimum extractor confidence to keep a result"
    )
    max_extractors: int = Field(
        default=0, description="Maximum number of extractors to run (0 = all)"
    )
    stop_on_success: bool = Field(
        default=False, description="Stop after the first extractor yielding fields"
    )

    # Generation Provider Configuration
    provider_base_url: str = Field(
        default="https://api.openai.com/v1", description="Chat completions base URL"
    )
    provider_api_key: Optional[str] = Field(
        default=None, description="Provider API key (empty = offline only)"
    )
    provider_model: str = Field(default="gpt-4o-mini", description="Provider model")
    provider_timeout: float = Field(
        default=15.0, description="Provider call timeout in seconds"
    )
    provider_max_tokens: int = Field(default=800, description="Max completion tokens")
    retry_attempts: int = Field(default=3, description="Number of retry attempts")
    retry_delay: float = Field(
        default=1.0, description="Delay between retries in seconds"
    )

    # Task Cache Configuration
    enable_durable_cache: bool = Field(
        default=True, description="Persist task results to the durable tier"
    )
    cache_db_path: str = Field(
        default=".cache/product_optimizer.sqlite3",
        description="SQLite file for the durable cache tier",
    )
    cache_memory_size: int = Field(
        default=10_000, description="Maximum entries in the in-memory tier"
    )
    ttl_long_tail_seconds: int = Field(
        default=24 * 3600, description="TTL for long-tail suggestions"
    )
    ttl_meta_seconds: int = Field(default=12 * 3600, description="TTL for meta tags")
    ttl_bullets_seconds: int = Field(
        default=6 * 3600, description="TTL for rewritten bullets"
    )
    ttl_gaps_seconds: int = Field(
        default=7 * 24 * 3600, description="TTL for attribute gap results"
    )

    # Prompt Construction
    max_title_chars: int = Field(default=200, description="Title truncation limit")
    max_bullet_chars: int = Field(default=300, description="Per-bullet truncation")
    max_bullets: int = Field(default=5, description="Bullets sent to the provider")
    max_description_chars: int = Field(
        default=1000, description="Description truncation limit"
    )

    # Server Configuration
    api_key: str = Field(default="", description="API key")
    require_api_key: bool = Field(
        default=False, description="Require API key for requests"
    )
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Optional log file")
    log_rotation: str = Field(default="daily", description="Log rotation policy")
    log_retention: int = Field(default=30, description="Rotated log files to keep")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("dev", "development", "local")

    @property
    def provider_enabled(self) -> bool:
        return bool(self.provider_api_key)

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
