"""Two-tier snapshot cache with time projection on read."""

import asyncio
import copy
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Hashable, Optional, Union

import structlog

from notecache.framework.cache_metrics import CacheMetrics
from notecache.framework.config import ServiceConfig
from notecache.framework.projector import InvalidationReason, Projection, project
from notecache.framework.registry import AccountRegistry, SecondaryStore
from notecache.schemas.models import AccountKey, Snapshot
from notecache.storage.redis import RedisClient, RedisConfig
from notecache.storage.secondary import SecondaryTier
from notecache.utils.errors import ConfigurationError

logger = structlog.get_logger()

DEFAULT_EXPIRATION_MS = 3_600_000
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600.0

Clock = Callable[[], int]
ThresholdResolver = Callable[[AccountKey], Optional[int]]
Projector = Callable[[AccountKey, Snapshot, int], Projection]


def now_ms() -> int:
    return int(time.time() * 1000)


class KeyedLock:
    """Per-key asyncio locks, dropped once nobody holds or awaits them."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class SnapshotStore:
    """
    Process-wide snapshot store.

    Owns the in-memory map, the per-key locks, the secondary tier and the
    single sweep task. Construct one per process and hand it to every
    ``DataCache``; call ``start()`` to begin sweeping and ``shutdown()``
    on teardown.
    """

    def __init__(
        self,
        secondary: Optional[SecondaryStore] = None,
        expiration_ms: int = DEFAULT_EXPIRATION_MS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        key_prefix: str = "notes",
        clock: Clock = now_ms,
        metrics: Optional[CacheMetrics] = None,
    ):
        if expiration_ms <= 0:
            raise ConfigurationError("expiration_ms must be positive", config_key="expiration_ms", config_value=expiration_ms)
        if sweep_interval_seconds <= 0:
            raise ConfigurationError(
                "sweep_interval_seconds must be positive",
                config_key="sweep_interval_seconds",
                config_value=sweep_interval_seconds,
            )

        self.expiration_ms = expiration_ms
        self.sweep_interval_seconds = sweep_interval_seconds
        self.clock = clock
        self.metrics = metrics or CacheMetrics()
        self.secondary = SecondaryTier(secondary, key_prefix=key_prefix, metrics=self.metrics)
        self.logger = structlog.get_logger("snapshot-store")

        self._entries: Dict[AccountKey, Snapshot] = {}
        self._locks = KeyedLock()
        self._sweep_task: Optional[asyncio.Task] = None
        self._owned_backend: Optional[RedisClient] = None
        self.is_running = False

    @classmethod
    def from_config(cls, config: ServiceConfig, secondary: Optional[SecondaryStore] = None, **kwargs: Any) -> "SnapshotStore":
        """Build a store from service configuration.

        A ``RedisClient`` is created for the secondary tier when it is
        enabled and no backend is passed in; the store then closes it on
        shutdown.
        """
        owned = None
        redis_url = config.redis_url()
        if secondary is None and redis_url:
            owned = RedisClient(RedisConfig(
                url=redis_url,
                max_connections=config.database.redis_max_connections,
                timeout=config.database.redis_timeout,
            ))
            secondary = owned

        store = cls(
            secondary=secondary,
            expiration_ms=config.cache.expiration_ms,
            sweep_interval_seconds=config.cache.sweep_interval_seconds,
            key_prefix=config.cache.key_prefix,
            **kwargs,
        )
        store._owned_backend = owned
        return store

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: AccountKey) -> bool:
        return key in self._entries

    async def start(self) -> None:
        """Start the periodic sweep."""
        if self._sweep_task is not None and not self._sweep_task.done():
            self.logger.warning("Sweep already running")
            return

        self.is_running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        self.logger.info("Snapshot store started", sweep_interval_seconds=self.sweep_interval_seconds)

    async def shutdown(self) -> None:
        """Stop the sweep and drop every in-memory snapshot."""
        self.is_running = False

        if self._sweep_task is not None:
            if not self._sweep_task.done():
                self._sweep_task.cancel()
                try:
                    await self._sweep_task
                except asyncio.CancelledError:
                    pass
            self._sweep_task = None

        self._entries.clear()
        self.metrics.set_entries(0)

        if self._owned_backend is not None:
            await self._owned_backend.close()

        self.logger.info("Snapshot store stopped")

    async def _sweep_loop(self) -> None:
        while self.is_running:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.clear_expired()
            except Exception as e:
                self.logger.error("Error in snapshot sweep", error=str(e))

    async def clear_expired(self) -> int:
        """Evict in-memory snapshots older than the expiration."""
        now = self.clock()
        cleared = 0

        for key, snapshot in list(self._entries.items()):
            if now - snapshot.last_update <= self.expiration_ms:
                continue

            async with self._locks.acquire(key):
                current = self._entries.get(key)
                if current is not None and now - current.last_update > self.expiration_ms:
                    del self._entries[key]
                    cleared += 1

        self.metrics.record_evictions(cleared)
        self.metrics.set_entries(len(self._entries))
        self.logger.debug("Cleared expired snapshots", count=cleared)
        return cleared

    async def install(self, key: AccountKey, snapshot: Snapshot, expiration_ms: Optional[int] = None) -> None:
        """Store a stamped snapshot in memory and mirror it."""
        async with self._locks.acquire(key):
            self._entries[key] = snapshot
            self.metrics.set_entries(len(self._entries))
            await self.secondary.set(key, snapshot, expiration_ms or self.expiration_ms)

        self.logger.debug("Set cache", key=str(key))

    async def fetch(self, key: AccountKey, projector: Projector, expiration_ms: Optional[int] = None) -> Optional[Snapshot]:
        """Project the stored snapshot to now, writing back or invalidating."""
        async with self._locks.acquire(key):
            tier = "memory"
            snapshot = self._entries.get(key)

            if snapshot is None:
                tier = "secondary"
                result = await self.secondary.get(key)
                snapshot = result.value

            if snapshot is None:
                self.metrics.record_miss()
                self.logger.debug("Cache miss", key=str(key))
                return None

            self.metrics.record_hit(tier)
            self.logger.debug("Cache hit", key=str(key), tier=tier)

            projection = projector(key, snapshot, self.clock())
            if projection.invalidated:
                await self._remove(key, projection.reason)
                return None

            self._entries[key] = projection.snapshot
            self.metrics.set_entries(len(self._entries))
            await self.secondary.set(key, projection.snapshot, expiration_ms or self.expiration_ms)
            return copy.deepcopy(projection.snapshot)

    async def invalidate(self, key: AccountKey) -> None:
        """Remove a snapshot from both tiers; absent keys are fine."""
        async with self._locks.acquire(key):
            await self._remove(key, "manual")

    async def _remove(self, key: AccountKey, reason: Union[InvalidationReason, str]) -> None:
        reason = reason.value if isinstance(reason, InvalidationReason) else reason
        self._entries.pop(key, None)
        self.metrics.set_entries(len(self._entries))
        self.metrics.record_invalidation(reason)
        await self.secondary.delete(key)
        self.logger.debug("Invalidated cache", key=str(key), reason=reason)

    def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        stats = self.metrics.get_metrics_summary()
        stats.update({
            "local_cache_size": len(self._entries),
            "active_locks": len(self._locks),
            "secondary_enabled": self.secondary.enabled,
            "sweep_running": self._sweep_task is not None and not self._sweep_task.done(),
        })
        return stats


def registry_thresholds(registry: AccountRegistry) -> ThresholdResolver:
    """Resolve thresholds from the accounts' stamina settings."""
    def resolve(key: AccountKey) -> Optional[int]:
        account = registry.get_account_by_id(key)
        return account.stamina_threshold if account is not None else None
    return resolve


class DataCache:
    """
    Cache client for one game.

    Each client carries its own regeneration rate and expiration while
    sharing the process-wide ``SnapshotStore``.
    """

    def __init__(
        self,
        store: SnapshotStore,
        rate: float,
        expiration_ms: Optional[int] = None,
        threshold_resolver: Optional[ThresholdResolver] = None,
    ):
        if rate is None or rate <= 0:
            raise ConfigurationError("rate must be positive seconds per unit", config_key="rate", config_value=rate)
        if expiration_ms is not None and expiration_ms <= 0:
            raise ConfigurationError("expiration_ms must be positive", config_key="expiration_ms", config_value=expiration_ms)

        self.store = store
        self.rate = rate
        self.expiration_ms = expiration_ms or store.expiration_ms
        self.threshold_resolver = threshold_resolver

    async def install(
        self,
        key: AccountKey,
        raw: Union[Snapshot, Dict[str, Any]],
        timestamp: Optional[int] = None,
    ) -> Snapshot:
        """Validate and store a fresh snapshot stamped with ``timestamp``."""
        snapshot = Snapshot.from_dict(raw.to_dict() if isinstance(raw, Snapshot) else raw)
        snapshot.last_update = timestamp if timestamp is not None else self.store.clock()

        await self.store.install(key, snapshot, self.expiration_ms)
        return copy.deepcopy(snapshot)

    async def fetch(self, key: AccountKey) -> Optional[Snapshot]:
        """Projected snapshot for ``key``, or None on a miss or invalidation."""
        return await self.store.fetch(key, self._project, self.expiration_ms)

    async def invalidate(self, key: AccountKey) -> None:
        await self.store.invalidate(key)

    def _project(self, key: AccountKey, snapshot: Snapshot, now: int) -> Projection:
        threshold = self.threshold_resolver(key) if self.threshold_resolver else None
        return project(snapshot, now, self.rate, self.expiration_ms, threshold)
