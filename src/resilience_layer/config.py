"""
Configuration settings for the Gateway Resilience Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Gateway Resilience Layer"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_TAG: str = "[gateway]"  # Prefix for every guard decision log line

    # === Fallback Chain ===
    DEFAULT_PROVIDER: str = "anthropic"  # Used when a model ref has no "provider/" prefix
    PRIMARY_MODEL: str = "anthropic/claude-opus-4-5"
    FALLBACK_MODELS: list[str] = []  # e.g., ["openrouter/anthropic/claude-sonnet-4", "ollama/qwen3:32b"]

    # === Classifier ===
    MAX_CAUSE_DEPTH: int = 10  # Cause chains deeper than this are not inspected

    # === Unhandled Failure Guard ===
    EXIT_ON_UNHANDLED: bool = True  # False: log terminate verdicts but keep the process alive

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
