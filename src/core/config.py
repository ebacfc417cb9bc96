"""Configuration Management."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="WEATHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
        populate_by_name=True,
    )

    # Server
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=2001, description="HTTP port")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
    shutdown_timeout: float = Field(
        default=5.0, gt=0, description="Wait for in-flight cache fills on shutdown (seconds)"
    )

    # Caching
    cache_dir: Path = Field(default=Path("cache"), description="Snapshot directory")
    weather_ttl: int = Field(default=600, gt=0, description="Forecast cache TTL (seconds)")
    summary_ttl: int = Field(default=600, gt=0, description="Summary cache TTL (seconds)")

    # Providers
    geocoder_url: str = Field(
        default="https://nominatim.openstreetmap.org/search", description="Geocoder search URL"
    )
    geocoder_user_agent: str = Field(default="wreport (eemeliruoh@gmail.com)")
    forecast_url: str = Field(
        default="https://api.met.no/weatherapi/locationforecast/2.0/complete",
        description="Forecast endpoint",
    )
    forecast_user_agent: str = Field(default="weather for home (eemeliruoh@gmail.com)")
    textgen_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Text generation API base URL",
    )
    http_timeout: float = Field(default=10.0, gt=0, description="Outbound request timeout")
    breaker_fail_max: int = Field(default=5, gt=0, description="Failures before breaker opens")
    breaker_reset_timeout: int = Field(default=30, gt=0, description="Breaker reset (seconds)")

    # Model
    google_aistudio_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GOOGLE_AISTUDIO_API_KEY", "WEATHER_GOOGLE_AISTUDIO_API_KEY"),
        description="Text generation API key",
    )
    textgen_model: str = Field(default="gemma-3-27b-it", description="Text generation model")
    textgen_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    textgen_max_tokens: int = Field(default=1000, gt=0)
    textgen_top_p: float = Field(default=0.95, ge=0.0, le=1.0)

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
