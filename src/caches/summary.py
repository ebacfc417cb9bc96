"""Summary cache: forecast to a one-line natural-language description."""

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from clients import TextGenerationClient
from core import CacheStore, SnapshotFormat, get_logger
from models import PublicForecast
from monitoring import MetricsCollector

from .prompt import build_prompt

logger = get_logger(__name__)

SNAPSHOT_FILE = "weather_summary_cache.json"
DEFAULT_TTL = 600


def _load_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"summary must be a string, got {type(value).__name__}")
    return value


SUMMARY_FORMAT: SnapshotFormat[str] = SnapshotFormat(dump=str, load=_load_text, field="summary")


class SummaryCache:
    """
    Generated summaries keyed by the forecast's own geometry.

    The key reads ``geometry.coordinates`` as ``[lon, lat, altitude]``.
    The timezone only shapes the prompt, so a summary generated for one
    timezone is served to callers asking for another until it expires.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        cache_dir: Path,
        ttl_seconds: float = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self.store: CacheStore[str] = CacheStore(
            "summary",
            Path(cache_dir) / SNAPSHOT_FILE,
            SUMMARY_FORMAT,
            ttl_seconds=ttl_seconds,
            sweep_on_insert=True,
            clock=clock,
            metrics=metrics,
        )

    async def get_summary(self, weather: PublicForecast, timezone_name: str | None = None) -> str:
        async def _load(key: str) -> str:
            now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
            prompt = build_prompt(weather, timezone_name, now=now)
            logger.debug("summary_prompt", key=key, timezone=timezone_name, chars=len(prompt))
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._client.generate, prompt)

        return await self.store.get_or_fetch(weather.summary_key(), _load)
