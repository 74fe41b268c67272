"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CARTCALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Cart
    default_instance: str = "main"
    session_key_prefix: str = "cart."
    conditions_order: list[str] = ["discount", "tax", "shipping"]

    # Logging
    log_level: str = "INFO"


settings = Settings()
