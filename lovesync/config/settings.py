"""Configuration management using Pydantic Settings.

Settings are loaded from the environment and an optional `.env` file.

The configuration is organized into logical groups:
- LoggingConfig: Logging levels and log file location
- CredentialsConfig: Per-service credentials (Subsonic, Last.fm, ListenBrainz, Spotify)
- APIConfig: Retry policy, timeouts and page sizes for service calls
- SyncConfig: Which source feeds which destinations, and how
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# Load environment variables so flat names in .env are visible too
load_dotenv()


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("lovesync.log")


class CredentialsConfig(BaseModel):
    """API credentials and authentication settings."""

    # Subsonic credentials
    subsonic_server: str = ""
    subsonic_username: str = ""
    subsonic_password: str = ""
    subsonic_client_name: str = "lovesync"

    # LastFM credentials
    lastfm_key: str = ""
    lastfm_secret: str = ""
    lastfm_username: str = ""
    lastfm_password: str = ""

    # ListenBrainz credentials
    listenbrainz_token: str = ""
    listenbrainz_username: str = ""

    # Spotify credentials
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_redirect_uri: str = "http://localhost:8888/callback"


class APIConfig(BaseModel):
    """External API configuration and retry policy."""

    retry_count: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 60.0
    request_timeout: float = 30.0

    subsonic_page_size: int = 500
    listenbrainz_page_size: int = 100
    spotify_page_size: int = 50
    lastfm_concurrency: int = 8  # In-flight MBID lookups


class SyncConfig(BaseModel):
    """Source/destination selection and sync behaviour."""

    source: str = ""
    destinations: str = ""  # Comma-separated connector names
    dry_run: bool = False
    remove_other: bool = False
    period_seconds: int = 0  # Below one minute means a single run

    @property
    def destination_names(self) -> list[str]:
        """Destinations as a trimmed list, empty entries dropped."""
        return [name.strip() for name in self.destinations.split(",") if name.strip()]


_LOG_MAPPING = {
    "console_log_level": "console_level",
    "file_log_level": "file_level",
    "log_file": "log_file",
}

_SYNC_MAPPING = {
    "source": "source",
    "destinations": "destinations",
    "dry_run": "dry_run",
    "remove_other": "remove_other",
    "period_seconds": "period_seconds",
}

FLAT_ENV_KEYS = (
    *_LOG_MAPPING,
    *CredentialsConfig.model_fields,
    *_SYNC_MAPPING,
)


class FlatEnvSettingsSource(PydanticBaseSettingsSource):
    """Collect flat variables (SUBSONIC_SERVER, SOURCE, ...) from the environment.

    The default env source only sees top-level fields and `__` nested names,
    so flat names are gathered here and remapped by the model validator.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        environ = {key.lower(): value for key, value in os.environ.items()}
        return {key: environ[key] for key in FLAT_ENV_KEYS if key in environ}


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: SUBSONIC_SERVER, LASTFM_KEY, SOURCE, DRY_RUN
    - Nested: CREDENTIALS__SUBSONIC_SERVER, SYNC__SOURCE, API__RETRY_COUNT

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    sync: SyncConfig = SyncConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            FlatEnvSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (SUBSONIC_SERVER) and maps them to the
        nested structure expected by the models (credentials.subsonic_server).
        """
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}

        # Logging mappings
        for env_key, field_key in _LOG_MAPPING.items():
            if env_key in data:
                transformed.setdefault("logging", {})[field_key] = data.pop(env_key)

        # Credentials mappings
        for field_key in CredentialsConfig.model_fields:
            if field_key in data:
                transformed.setdefault("credentials", {})[field_key] = data.pop(
                    field_key
                )

        # Sync mappings
        for env_key, field_key in _SYNC_MAPPING.items():
            if env_key in data:
                transformed.setdefault("sync", {})[field_key] = data.pop(env_key)

        # Merge over any nested values that were given explicitly
        for section, values in transformed.items():
            existing = data.get(section)
            if isinstance(existing, dict):
                data[section] = {**existing, **values}
            else:
                data[section] = values

        return data


# Singleton instance for application use
settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
