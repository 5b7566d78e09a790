"""Engine and portal client configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Portal API (the remote data service)
    api_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the campus room portal API",
    )
    api_token: str = Field(
        default="",
        description="Bearer token sent with every API request (empty = no header)",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for a single API request",
    )

    # Paths
    cache_dir: str = Field(
        default="data/cache",
        description="Directory for fallback collection snapshots",
    )

    # Timetable grid
    first_slot_hour: int = Field(
        default=8,
        ge=0,
        le=23,
        description="Start hour of the first hourly slot in the weekly grid",
    )
    last_slot_hour: int = Field(
        default=18,
        ge=1,
        le=24,
        description="End hour of the last hourly slot in the weekly grid",
    )
    upcoming_limit: int = Field(
        default=3,
        ge=1,
        description="Number of classes shown in the upcoming-classes panel",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "CAMPUSROOM_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: Settings | None = None


def get_config() -> Settings:
    """Get the configuration singleton.

    Returns:
        Settings: Configuration instance
    """
    global _config
    if _config is None:
        _config = Settings()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
