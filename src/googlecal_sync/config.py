"""Configuration management for Google Calendar sync."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

# Out-of-band flow: the user pastes the verification code back into the app
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


class AppConfig(BaseSettings):
    """Application configuration."""

    # Stores
    config_file: Path = Field(
        default=Path("googlecal_sync.yaml"), validation_alias="GOOGLECAL_CONFIG_FILE"
    )
    state_file: Path = Field(
        default=Path(".googlecal_state.yaml"), validation_alias="GOOGLECAL_STATE_FILE"
    )

    # Provider
    application_name: str = Field(
        default="Google Calendar API events", validation_alias="GOOGLECAL_APPLICATION_NAME"
    )
    redirect_uri: str = Field(
        default=OOB_REDIRECT_URI, validation_alias="GOOGLECAL_REDIRECT_URI"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, validation_alias="GOOGLECAL_REQUEST_TIMEOUT"
    )
    max_results: int = Field(default=10, gt=0, validation_alias="GOOGLECAL_MAX_RESULTS")

    # Calendar day boundaries; system local zone when unset
    timezone: Optional[str] = Field(default=None, validation_alias="GOOGLECAL_TIMEZONE")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )
