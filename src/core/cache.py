"""Read-through cache with TTL, snapshot persistence and per-key single-flight.

One ``CacheStore`` backs each cache family of the service. A lookup either
returns a fresh in-memory entry or runs the caller's loader exactly once per
key, no matter how many callers are waiting on that key. Every successful
fill rewrites the family's JSON snapshot so entries survive a restart.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, TypeVar

from .errors import PersistenceFailed
from .json import JSONParseError, dumps, loads_object, write_atomic
from .logging_config import get_logger

if TYPE_CHECKING:
    from monitoring.metrics import MetricsCollector

logger = get_logger(__name__)

V = TypeVar("V")

Loader = Callable[[str], Awaitable[V]]


class LoadState(str, Enum):
    """Whether the snapshot file has been merged into memory yet."""

    UNLOADED = "unloaded"
    LOADED = "loaded"


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    inserted_at: float


@dataclass(frozen=True)
class SnapshotFormat(Generic[V]):
    """
    How one cache family's values are written to and read from disk.

    Args:
        dump: Convert a value to JSON-compatible data
        load: Rebuild a value from the decoded JSON data
        field: Name of the value field next to ``"time"``. ``None`` stores the
            bare value with no timestamp, which only permanent caches may do.
    """

    dump: Callable[[V], Any]
    load: Callable[[Any], V]
    field: str | None = None


@dataclass
class Stats:
    """Cache statistics."""

    size: int = 0
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    loads: int = 0
    load_failures: int = 0
    evictions: int = 0
    persist_failures: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate (0.0 to 1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Export as dictionary."""
        return {
            "size": self.size,
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "loads": self.loads,
            "load_failures": self.load_failures,
            "evictions": self.evictions,
            "persist_failures": self.persist_failures,
            "hit_rate": self.hit_rate,
        }


def format_timestamp(ts: float) -> str:
    """Epoch seconds to ISO-8601 UTC with a ``Z`` suffix."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(text: str) -> float:
    """
    ISO-8601 (``Z`` or offset suffix) to epoch seconds.

    Raises:
        TypeError: ``text`` is not a string
        ValueError: ``text`` is not an ISO-8601 timestamp
    """
    if not isinstance(text, str):
        raise TypeError(f"timestamp must be a string, got {type(text).__name__}")
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class CacheStore(Generic[V]):
    """
    Disk-backed read-through cache for one family of values.

    Features:
    - Optional TTL, checked on every read (an entry is fresh while age < TTL)
    - Snapshot merged from disk once, on the first slow-path lookup
    - Whole-map snapshot rewritten after every successful fill
    - Per-key single-flight: concurrent misses on one key share one load,
      misses on different keys load concurrently
    - Loader errors propagate unchanged and are never cached
    - Snapshot write failures are logged and counted, never raised

    Examples:
        >>> store = CacheStore("location", Path("cache/location.json"), fmt)
        >>> coords = await store.get_or_fetch("Helsinki", geocode)
    """

    def __init__(
        self,
        name: str,
        snapshot_path: Path,
        snapshot_format: SnapshotFormat[V],
        ttl_seconds: float | None = None,
        *,
        sweep_on_insert: bool = True,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize cache store.

        Args:
            name: Cache family name used in logs and metrics
            snapshot_path: JSON file holding the persisted map
            snapshot_format: Value (de)serialization for the snapshot
            ttl_seconds: Time-to-live in seconds (None = never expires)
            sweep_on_insert: Drop expired entries after each fill (TTL caches only)
            clock: Source of epoch seconds
            metrics: Optional Prometheus collector
        """
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if ttl_seconds is not None and snapshot_format.field is None:
            raise ValueError("caches with a TTL must persist entry timestamps")

        self.name = name
        self.snapshot_path = Path(snapshot_path)
        self.ttl_seconds = ttl_seconds
        self.sweep_on_insert = sweep_on_insert and ttl_seconds is not None

        self._format = snapshot_format
        self._clock = clock
        self._metrics = metrics

        self._entries: dict[str, CacheEntry[V]] = {}
        self._state = LoadState.UNLOADED
        self._lock = asyncio.Lock()
        self._in_flight: dict[str, asyncio.Future[V]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._stats = Stats()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _is_fresh(self, entry: CacheEntry[V], now: float) -> bool:
        if self.ttl_seconds is None:
            return True
        return now - entry.inserted_at < self.ttl_seconds

    def _fresh_entry(self, key: str) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self._clock()):
            return None
        return entry

    def peek(self, key: str) -> V | None:
        """Return the fresh in-memory value for ``key`` without loading anything."""
        entry = self._fresh_entry(key)
        return entry.value if entry is not None else None

    async def get_or_fetch(self, key: str, loader: Loader[V]) -> V:
        """
        Return the cached value for ``key`` or load, store and persist it.

        Args:
            key: Cache key
            loader: Coroutine function called with ``key`` on a miss

        Returns:
            Fresh cached value or the loader's result

        Raises:
            Whatever ``loader`` raises, unchanged
        """
        entry = self._fresh_entry(key)
        if entry is not None:
            self._record_hit(key)
            return entry.value

        async with self._lock:
            await self._ensure_loaded()

            entry = self._fresh_entry(key)
            if entry is not None:
                self._record_hit(key)
                return entry.value

            future = self._in_flight.get(key)
            if future is None:
                self._record_miss(key)
                future = asyncio.get_running_loop().create_future()
                self._in_flight[key] = future
                task = asyncio.create_task(self._fill(key, loader, future))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                self._stats.coalesced += 1
                logger.debug("cache_join_in_flight", cache=self.name, key=key)

        # A caller that gives up must not cancel the fill other callers share
        return await asyncio.shield(future)

    # ------------------------------------------------------------------
    # Fill
    # ------------------------------------------------------------------

    async def _fill(self, key: str, loader: Loader[V], future: asyncio.Future[V]) -> None:
        try:
            value = await loader(key)
        except asyncio.CancelledError:
            self._in_flight.pop(key, None)
            future.cancel()
            raise
        except Exception as e:
            self._in_flight.pop(key, None)
            self._stats.load_failures += 1
            if self._metrics:
                self._metrics.record_cache_fill(self.name, "error")
            logger.warning("cache_fill_failed", cache=self.name, key=key, error=str(e))
            future.set_exception(e)
            # Mark retrieved; every caller that still waits gets it via shield
            future.exception()
            return

        try:
            async with self._lock:
                self._store(key, value)
                await self._persist()
        finally:
            self._in_flight.pop(key, None)
            if not future.done():
                future.set_result(value)

    def _store(self, key: str, value: V) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(value=value, inserted_at=now)
        self._stats.loads += 1
        if self._metrics:
            self._metrics.record_cache_fill(self.name, "success")
        logger.info("cache_fill", cache=self.name, key=key)

        if self.sweep_on_insert:
            self._sweep(now)
        self._stats.size = len(self._entries)
        if self._metrics:
            self._metrics.set_cache_entries(self.name, len(self._entries))

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        removed = self._sweep(self._clock())
        self._stats.size = len(self._entries)
        return removed

    def _sweep(self, now: float) -> int:
        if self.ttl_seconds is None:
            return 0
        expired = [k for k, entry in self._entries.items() if not self._is_fresh(entry, now)]
        for k in expired:
            del self._entries[k]

        if expired:
            self._stats.evictions += len(expired)
            if self._metrics:
                self._metrics.record_evictions(self.name, len(expired))
            logger.debug("cache_sweep", cache=self.name, removed=len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def _ensure_loaded(self) -> None:
        """Merge the snapshot into memory once. Caller holds the lock."""
        if self._state is LoadState.LOADED:
            return

        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(None, self._read_snapshot)
        except (OSError, JSONParseError) as e:
            logger.warning(
                "snapshot_load_failed", cache=self.name, path=str(self.snapshot_path), error=str(e)
            )
            raw = {}

        restored = 0
        for key, item in raw.items():
            if key in self._entries:
                continue
            try:
                self._entries[key] = self._decode_entry(item)
                restored += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("snapshot_entry_skipped", cache=self.name, key=key, error=str(e))

        self._state = LoadState.LOADED
        self._stats.size = len(self._entries)
        logger.info("snapshot_loaded", cache=self.name, entries=restored)

    def _read_snapshot(self) -> dict[str, Any]:
        if not self.snapshot_path.exists():
            return {}
        return loads_object(self.snapshot_path.read_bytes())

    def _decode_entry(self, item: Any) -> CacheEntry[V]:
        if self._format.field is None:
            return CacheEntry(value=self._format.load(item), inserted_at=self._clock())
        return CacheEntry(
            value=self._format.load(item[self._format.field]),
            inserted_at=parse_timestamp(item["time"]),
        )

    def _encode_entry(self, entry: CacheEntry[V]) -> Any:
        if self._format.field is None:
            return self._format.dump(entry.value)
        return {
            "time": format_timestamp(entry.inserted_at),
            self._format.field: self._format.dump(entry.value),
        }

    async def _persist(self) -> None:
        """Rewrite the snapshot. Caller holds the lock; failures are swallowed."""
        try:
            try:
                payload = dumps({k: self._encode_entry(e) for k, e in self._entries.items()})
            except (TypeError, ValueError) as e:
                raise PersistenceFailed(f"Failed to encode {self.name} cache: {e}") from e

            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, write_atomic, self.snapshot_path, payload)
            except OSError as e:
                raise PersistenceFailed(f"Failed to save {self.name} cache: {e}") from e
        except PersistenceFailed as e:
            self._stats.persist_failures += 1
            if self._metrics:
                self._metrics.record_persist_failure(self.name)
            logger.warning("snapshot_persist_failed", cache=self.name, error=str(e))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _record_hit(self, key: str) -> None:
        self._stats.hits += 1
        if self._metrics:
            self._metrics.record_cache_hit(self.name)
        logger.debug("cache_hit", cache=self.name, key=key)

    def _record_miss(self, key: str) -> None:
        self._stats.misses += 1
        if self._metrics:
            self._metrics.record_cache_miss(self.name)
        logger.debug("cache_miss", cache=self.name, key=key)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def stats(self) -> Stats:
        """Get cache statistics."""
        return self._stats

    async def close(self, timeout: float = 5.0) -> None:
        """
        Wait for outstanding fills, then cancel any still running.

        Call before closing the provider clients the loaders use.
        """
        tasks = set(self._tasks)
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("cache_fills_cancelled", cache=self.name, count=len(pending))

    def in_flight(self) -> int:
        """Number of keys currently being loaded."""
        return len(self._in_flight)

    def __len__(self) -> int:
        """Return number of entries held in memory, fresh or not."""
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Check whether a fresh entry exists."""
        return self._fresh_entry(key) is not None


__all__ = [
    "CacheStore",
    "CacheEntry",
    "SnapshotFormat",
    "LoadState",
    "Stats",
    "format_timestamp",
    "parse_timestamp",
]
