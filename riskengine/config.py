"""
Engine Configuration — Pydantic Settings

Centralized configuration management using environment variables.
Loads from .env file automatically with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Priority: Environment variables > .env file > defaults
    """

    # === Project ===
    PROJECT_NAME: str = "Readiness Risk Engine"
    ENVIRONMENT: str = "local"  # local, development, staging, production
    LOG_LEVEL: str = "INFO"

    # === Evaluation Cycle ===
    TICK_INTERVAL_SECONDS: float = 1.0

    # === Alert Lifecycle ===
    ESCALATION_AFTER_SECONDS: float = 300.0  # Condition persisting this long escalates
    MAX_ESCALATION_LEVEL: int = 3
    AUTO_RESOLVE: bool = True

    # === Settings Configuration ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Singleton instance
settings = Settings()
