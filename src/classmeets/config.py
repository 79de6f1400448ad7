"""Engine configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class ScheduleConfig(BaseSettings):
    """Schedule engine configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Portal API
    portal_api_url: str = Field(
        default="http://localhost:3006/api",
        description="Base URL of the learning portal API",
    )
    portal_api_token: str = Field(
        default="",
        description="Student bearer token for the portal API",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for a single portal API request",
    )

    # Schedule view
    page_size: int = Field(
        default=5,
        gt=0,
        description="Number of sessions per schedule page",
    )

    # Polling
    sessions_poll_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval between session row refreshes",
    )
    meta_poll_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between batch metadata refreshes",
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
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: ScheduleConfig | None = None


def get_config() -> ScheduleConfig:
    """Get the engine configuration singleton.

    Returns:
        ScheduleConfig: Engine configuration instance
    """
    global _config
    if _config is None:
        _config = ScheduleConfig()
    return _config
