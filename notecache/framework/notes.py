"""Cache-aware access to upstream daily notes."""

from typing import Any, Dict, Mapping, Optional

import structlog

from notecache.framework.cache import DataCache
from notecache.framework.registry import AccountRegistry
from notecache.schemas.models import Account, Snapshot
from notecache.utils.errors import ValidationError


class CachedNotes:
    """
    Serves notes from the per-game caches, querying upstream on a miss.

    Fresh results are installed so the next reader gets a projected copy
    instead of another upstream call.
    """

    def __init__(self, caches: Mapping[str, DataCache], registry: AccountRegistry):
        self.caches = caches
        self.registry = registry
        self.logger = structlog.get_logger("cached-notes")

    async def get(self, platform_name: str, account: Account, refresh: bool = False) -> Optional[Dict[str, Any]]:
        """
        Notes for ``account``, or None when upstream has no data.

        Args:
            platform_name: Registry name of the game platform.
            account: Account to read.
            refresh: Skip the cache and query upstream.
        """
        cache = self.caches.get(platform_name)

        if cache is not None and not refresh:
            snapshot = await cache.fetch(account.uid)
            if snapshot is not None:
                return snapshot.to_notes()

        platform = self.registry.get(platform_name)
        if platform is None:
            self.logger.warning("Unknown platform", platform=platform_name)
            return None

        notes = await platform.notes(account)
        if not notes or notes.get("success") is False:
            self.logger.debug("Notes query failed", platform=platform_name, uid=str(account.uid))
            return None

        data = notes.get("data") or {}
        if cache is not None:
            try:
                snapshot = Snapshot.from_notes(data)
            except ValidationError as e:
                self.logger.error("Malformed notes, not cached", platform=platform_name, uid=str(account.uid), error=e.message)
            else:
                if snapshot.threshold is None:
                    snapshot.threshold = account.stamina_threshold
                await cache.install(account.uid, snapshot)

        return data
