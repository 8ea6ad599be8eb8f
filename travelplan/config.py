"""
Configuration management for the Travel Plan backend.
Uses Pydantic Settings to load configuration from environment variables.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://travelplan:travelplan@db:5432/travelplan",
        description="Database connection URL (asyncpg for PostgreSQL, aiosqlite for local tests)"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log"
    )

    # Export / import
    app_version: str = Field(
        default="0.1.0",
        description="Application version written into trip exports"
    )
    export_format_version: int = Field(
        default=1,
        description="Version of the trip export JSON format"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Root log level")


# Global settings instance
settings = Settings()
