"""
Configuration management for ClauseCloud.

Loads settings from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # ==========================================================================
    # LLM API Keys
    # ==========================================================================
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openai_api_key: str = Field(default="", description="OpenAI API key for GPT-4o")

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_model: str = "gpt-4o"
    llm_max_tokens: int = 4096
    llm_temperature: float | None = None
    llm_timeout: float | None = None
    llm_max_attempts: int = Field(default=1, ge=1)
    llm_json_repair_attempts: int = Field(default=1, ge=0)
    strict_analysis_schema: bool = False

    # ==========================================================================
    # Chat Context
    # ==========================================================================
    chat_context_max_chars: int = 50_000
    chat_history_max_turns: int = Field(
        default=40,
        ge=0,
        description="Turns replayed into each chat prompt; 0 replays the full history",
    )

    # ==========================================================================
    # Uploads
    # ==========================================================================
    max_file_size_mb: int = 10
    allowed_upload_types: list[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "text/plain",
    ]
    image_extraction_mode: Literal["placeholder", "vision"] = "placeholder"

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    frontend_url: str = "http://localhost:3000"

    # Per-client limit on /api/ requests; 0 requests disables it
    rate_limit_window_ms: int = Field(default=15 * 60 * 1000, gt=0)
    rate_limit_max_requests: int = Field(default=100, ge=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return str(v).upper()

    @property
    def llm_model(self) -> str:
        """Model identifier for the selected provider."""
        if self.llm_provider == "openai":
            return self.openai_model
        return self.anthropic_model

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def cors_origins(self) -> list[str]:
        return [self.frontend_url]

    def has_llm_credentials(self) -> bool:
        """Check whether the selected provider has an API key configured."""
        if self.llm_provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
