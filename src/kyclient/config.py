# kyclient/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__


class KySettings(BaseSettings):
    """
    Manages user-configurable defaults for kyclient, loaded from environment
    variables (prefixed with 'KY_') or a .env file.

    Explicit arguments to `Ky.create()` and to the request methods always take
    precedence over these values.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),  # Look in both .env and secrets.env
        env_file_encoding="utf-8",
        env_prefix="KY_",
        extra="ignore",  # Ignore extra fields found in environment
        case_sensitive=False,  # Allow flexible casing in environment variables
    )

    # --- Client Behavior Settings ---
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Default per-exchange timeout in seconds (connect/read/write)",
    )
    max_retries: int = Field(
        default=0, ge=0, description="Default number of retries for failed requests"
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=0,
        description="Linear backoff step in seconds; retry n waits n * retry_backoff",
    )
    user_agent: str = Field(
        default=f"kyclient/{__version__}",
        description="User-Agent header for requests",
    )
    follow_redirects: bool = Field(
        default=True, description="Whether the transport follows redirects"
    )


# Create a single, cached instance of settings
@lru_cache
def get_settings() -> KySettings:
    """
    Provides access to the kyclient settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        KySettings: The settings instance.
    """
    return KySettings()
