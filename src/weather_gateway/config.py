"""Typed settings loader for the weather gateway."""

from __future__ import annotations

from datetime import tzinfo
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

Units = Literal["standard", "metric", "imperial"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    openweather_api_key: str = Field(alias="OPENWEATHER_API_KEY", repr=False)
    openweather_base_url: AnyUrl = Field(
        default=AnyUrl("https://api.openweathermap.org"),
        alias="OPENWEATHER_BASE_URL",
    )

    weather_timeout_seconds: float = Field(default=30.0, alias="WEATHER_TIMEOUT_SECONDS")
    weather_max_retries: int = Field(default=3, alias="WEATHER_MAX_RETRIES")
    weather_retry_delay_seconds: float = Field(
        default=1.0,
        alias="WEATHER_RETRY_DELAY_SECONDS",
    )

    forecast_entry_count: int = Field(default=24, alias="FORECAST_ENTRY_COUNT")
    forecast_max_days: int = Field(default=4, alias="FORECAST_MAX_DAYS")
    forecast_timezone: str | None = Field(default=None, alias="FORECAST_TIMEZONE")
    default_units: Units = Field(default="metric", alias="DEFAULT_UNITS")

    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
    )

    @field_validator("forecast_timezone", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat an empty env-string as "use the server's local zone"."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric bounds and cross-field settings."""
        if not self.openweather_api_key.strip():
            raise ValueError("OPENWEATHER_API_KEY must not be empty.")
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if self.weather_max_retries < 0:
            raise ValueError("WEATHER_MAX_RETRIES must be >= 0.")
        if self.weather_retry_delay_seconds < 0:
            raise ValueError("WEATHER_RETRY_DELAY_SECONDS must be >= 0.")
        if not (1 <= self.forecast_entry_count <= 40):
            raise ValueError("FORECAST_ENTRY_COUNT must be between 1 and 40.")
        if self.forecast_max_days <= 0:
            raise ValueError("FORECAST_MAX_DAYS must be > 0.")
        if not (1 <= self.api_port <= 65535):
            raise ValueError("API_PORT must be between 1 and 65535.")
        if self.forecast_timezone is not None:
            try:
                ZoneInfo(self.forecast_timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(
                    f"FORECAST_TIMEZONE is not a known IANA zone: {self.forecast_timezone}"
                ) from exc
        return self

    def forecast_tzinfo(self) -> tzinfo | None:
        """Zone used to bucket forecast entries; None means server local time."""
        if self.forecast_timezone is None:
            return None
        return ZoneInfo(self.forecast_timezone)

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "app_env": self.app_env,
            "base_url": str(self.openweather_base_url),
            "timeout_seconds": self.weather_timeout_seconds,
            "max_retries": self.weather_max_retries,
            "retry_delay_seconds": self.weather_retry_delay_seconds,
            "forecast_entry_count": self.forecast_entry_count,
            "forecast_max_days": self.forecast_max_days,
            "forecast_timezone": self.forecast_timezone or "local",
            "default_units": self.default_units,
            "api_host": self.api_host,
            "api_port": self.api_port,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
