"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .logging_config import configure_logging, get_logger, LogContext
from .errors import (
    WeatherServiceError,
    NotFound,
    UpstreamRequestFailed,
    UpstreamParseFailed,
    MalformedUpstreamResponse,
    ConfigMissing,
    PersistenceFailed,
    InvalidTimezone,
)
from .json import JSONParseError, dumps, loads_object, write_atomic
from .cache import CacheStore, CacheEntry, SnapshotFormat, LoadState, Stats


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Errors
    "WeatherServiceError",
    "NotFound",
    "UpstreamRequestFailed",
    "UpstreamParseFailed",
    "MalformedUpstreamResponse",
    "ConfigMissing",
    "PersistenceFailed",
    "InvalidTimezone",
    # JSON
    "JSONParseError",
    "dumps",
    "loads_object",
    "write_atomic",
    # DI
    "create_container",
    # Caching
    "CacheStore",
    "CacheEntry",
    "SnapshotFormat",
    "LoadState",
    "Stats",
]
