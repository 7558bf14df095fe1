"""
Configuration settings for the audit flattener.

Uses Pydantic Settings to load environment variables (or a `.env` file) for
logging, discovery defaults, and output formatting.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Discovery
    discovery_strategy: str = Field("sampled", alias="DISCOVERY_STRATEGY")
    collision_prefix: str = Field("AuditData_", alias="COLLISION_PREFIX")
    error_message_limit: int = Field(100, alias="ERROR_MESSAGE_LIMIT", gt=0)
    progress_every: int = Field(1000, alias="PROGRESS_EVERY", ge=0)

    # Output
    csv_delimiter: str = Field(",", alias="CSV_DELIMITER", min_length=1, max_length=1)
    output_encoding: str = Field("utf-8", alias="OUTPUT_ENCODING")
    results_dir: str = Field("results", alias="RESULTS_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
