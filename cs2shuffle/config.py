"""
Deployment settings loaded from defaults, a .env file and environment variables.

Environment variables use the SHUFFLE_ prefix:
SHUFFLE_DATA_DIR, SHUFFLE_DB_FILENAME, SHUFFLE_DEFAULT_TEAM_SIZE,
SHUFFLE_OPTIMIZATION_PASSES, SHUFFLE_LOG_LEVEL, SHUFFLE_HOST, SHUFFLE_PORT.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cs2shuffle.utils.constants import DEFAULT_OPTIMIZATION_PASSES, DEFAULT_TEAM_SIZE


class ShuffleSettings(BaseSettings):
    """Settings shared by the web server and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="SHUFFLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(default="data", description="Directory holding the SQLite database")
    db_filename: str = Field(default="shuffle.db")
    default_team_size: int = Field(default=DEFAULT_TEAM_SIZE, ge=1, le=10)
    optimization_passes: int = Field(
        default=DEFAULT_OPTIMIZATION_PASSES, ge=0,
        description="Maximum swap passes of the team balancing local search"
    )
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    host: str = Field(default="127.0.0.1", description="Bind address of the web server")
    port: int = Field(default=8000, ge=1, le=65535)


@lru_cache()
def get_settings() -> ShuffleSettings:
    """Get cached settings instance."""
    return ShuffleSettings()
