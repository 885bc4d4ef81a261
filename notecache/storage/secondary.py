"""Best-effort secondary tier for cached snapshots.

Every call returns a ``StoreResult`` instead of raising: failures are
logged and counted here, and the store carries on memory-only.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from notecache.framework.cache_metrics import CacheMetrics
from notecache.framework.registry import SecondaryStore
from notecache.schemas.models import AccountKey, Snapshot
from notecache.utils.errors import StorageError, ValidationError, create_error_context


@dataclass
class StoreResult:
    """Outcome of a secondary tier call."""
    ok: bool
    value: Any = None
    error: Optional[StorageError] = None


class SecondaryTier:
    """Wraps an optional ``SecondaryStore`` with local error recovery."""

    def __init__(
        self,
        backend: Optional[SecondaryStore] = None,
        key_prefix: str = "notes",
        metrics: Optional[CacheMetrics] = None,
    ):
        self.backend = backend
        self.key_prefix = key_prefix
        self.metrics = metrics
        self.logger = structlog.get_logger("secondary-tier")

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    def storage_key(self, key: AccountKey) -> str:
        return f"{self.key_prefix}:{key}" if self.key_prefix else str(key)

    def _failure(self, operation: str, key: AccountKey, error: Exception) -> StoreResult:
        wrapped = StorageError(
            f"Secondary {operation} failed: {error}",
            operation=operation,
            key=str(key),
            context=create_error_context("secondary-tier", operation, key=key),
        )
        wrapped.__cause__ = error
        self.logger.error("Secondary tier error", operation=operation, key=str(key), error=str(error))
        if self.metrics:
            self.metrics.record_secondary_error(operation)
        return StoreResult(ok=False, error=wrapped)

    async def get(self, key: AccountKey) -> StoreResult:
        """Read and decode a snapshot; ``value`` is None on a miss."""
        if not self.enabled:
            return StoreResult(ok=True)

        try:
            raw = await self.backend.get(self.storage_key(key))
            if raw is None:
                return StoreResult(ok=True)
            return StoreResult(ok=True, value=Snapshot.from_dict(raw))
        except ValidationError as e:
            return self._failure("decode", key, e)
        except Exception as e:
            return self._failure("get", key, e)

    async def set(self, key: AccountKey, snapshot: Snapshot, expiration_ms: int) -> StoreResult:
        """Mirror a snapshot with the store's expiration."""
        if not self.enabled:
            return StoreResult(ok=True)

        ttl = max(1, expiration_ms // 1000)
        try:
            await self.backend.set(self.storage_key(key), snapshot.to_dict(), ttl)
            return StoreResult(ok=True)
        except Exception as e:
            return self._failure("set", key, e)

    async def delete(self, key: AccountKey) -> StoreResult:
        if not self.enabled:
            return StoreResult(ok=True)

        try:
            deleted = await self.backend.delete(self.storage_key(key))
            return StoreResult(ok=True, value=deleted)
        except Exception as e:
            return self._failure("delete", key, e)
