"""Forecast cache: coordinates to the public forecast view, 10 minute TTL."""

import asyncio
import time
from pathlib import Path
from typing import Callable

from clients import ForecastClient
from core import CacheStore, SnapshotFormat
from core.errors import NotFound
from models import Coordinates, PublicForecast
from monitoring import MetricsCollector

SNAPSHOT_FILE = "weather_cache.json"
DEFAULT_TTL = 600

FORECAST_FORMAT: SnapshotFormat[PublicForecast] = SnapshotFormat(
    dump=lambda forecast: forecast.to_json(),
    load=PublicForecast.model_validate,
    field="weather",
)


class ForecastCache:
    """
    Forecasts keyed by coordinates rounded to 4 decimals.

    Two points within roughly 11 m share an entry. Expired entries are
    swept from the whole map after every successful fetch.
    """

    def __init__(
        self,
        client: ForecastClient,
        cache_dir: Path,
        ttl_seconds: float = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._client = client
        self.store: CacheStore[PublicForecast] = CacheStore(
            "weather",
            Path(cache_dir) / SNAPSHOT_FILE,
            FORECAST_FORMAT,
            ttl_seconds=ttl_seconds,
            sweep_on_insert=True,
            clock=clock,
            metrics=metrics,
        )

    async def get_forecast(self, coords: Coordinates) -> PublicForecast:
        async def _load(_key: str) -> PublicForecast:
            loop = asyncio.get_running_loop()
            envelope = await loop.run_in_executor(None, self._client.fetch, coords)
            return envelope.public_view()

        return await self.store.get_or_fetch(coords.key(), _load)


def current_temperature(forecast: PublicForecast) -> float:
    """
    Air temperature of the first time-series entry.

    Raises:
        NotFound: No entry, no instant details or no temperature reading
    """
    current = forecast.current()
    details = current.data.instant.details if current else None
    if details is None or details.air_temperature is None:
        raise NotFound("Temperature data not found")
    return details.air_temperature
