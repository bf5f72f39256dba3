from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DispatchSettings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    environment: str = "development"

    # Presence rows older than this are treated as offline in passenger-facing listings
    heartbeat_window_seconds: int = Field(
        default=120,
        ge=10,
        le=3600,
        description="Maximum age of a rider's last location update before it is treated as offline",
    )
    default_search_radius_km: float = Field(
        default=10.0,
        ge=0.5,
        le=50.0,
        description="Radius used by the proximity matcher when the caller does not supply one",
    )
    recently_completed_window_seconds: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="How long a completed request is still returned as the passenger's active ride",
    )

    # Server-side expiry of abandoned pending requests
    pending_request_ttl_seconds: int = Field(
        default=120,
        ge=0,
        le=86400,
        description="Pending requests older than this are cancelled by the sweeper. 0 disables expiry.",
    )
    expiry_sweep_interval_seconds: float = Field(default=15.0, ge=1.0, le=600.0)

    history_limit: int = Field(default=20, ge=1, le=500)
    timezone: str = Field(
        default="Asia/Colombo",
        description="Time zone used to derive the hour of day for the advisory radius",
    )

    model_config = SettingsConfigDict(env_prefix="DISPATCH_")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {v}") from exc
        return v


class DatabaseSettings(BaseSettings):
    url: str = "sqlite:///data/dispatch.db"
    echo: bool = False

    model_config = SettingsConfigDict(env_prefix="DB_")


class RedisSettings(BaseSettings):
    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""
    ssl: bool = False

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "RedisSettings":
        if self.enabled and not self.password:
            raise ValueError("Required credential not provided: REDIS_PASSWORD")
        return self


class APISettings(BaseSettings):
    key: str = ""
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    poll_rate_limit: str = "120/minute"
    mutation_rate_limit: str = "60/minute"

    model_config = SettingsConfigDict(env_prefix="API_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "APISettings":
        if not self.key:
            raise ValueError("Required credential not provided: API_KEY")
        return self


class CORSSettings(BaseSettings):
    origins: str = "http://localhost:8081,http://localhost:19006"

    model_config = SettingsConfigDict(env_prefix="CORS_")


class Settings(BaseSettings):
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    api: APISettings = Field(default_factory=APISettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
