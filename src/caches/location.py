"""Location cache: place name to coordinates, kept forever."""

import asyncio
import time
from pathlib import Path
from typing import Callable

from clients import GeocoderClient
from core import CacheStore, SnapshotFormat
from models import Coordinates
from monitoring import MetricsCollector

SNAPSHOT_FILE = "location_cache.json"

# Stored as bare {"lat", "lon"} objects; permanent entries need no timestamp
LOCATION_FORMAT: SnapshotFormat[Coordinates] = SnapshotFormat(
    dump=lambda coords: coords.model_dump(),
    load=Coordinates.model_validate,
)


class LocationCache:
    """
    Geocoding results keyed by the place name exactly as requested.

    No case or whitespace normalization: ``"Helsinki"`` and ``"helsinki"``
    are separate entries.
    """

    def __init__(
        self,
        client: GeocoderClient,
        cache_dir: Path,
        *,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._client = client
        self.store: CacheStore[Coordinates] = CacheStore(
            "location",
            Path(cache_dir) / SNAPSHOT_FILE,
            LOCATION_FORMAT,
            ttl_seconds=None,
            clock=clock,
            metrics=metrics,
        )

    async def get_coordinates(self, location: str) -> Coordinates:
        return await self.store.get_or_fetch(location, self._geocode)

    async def _geocode(self, location: str) -> Coordinates:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._client.geocode, location)
