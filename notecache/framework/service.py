"""
Process runner for the notes cache.

Wires configuration, logging, the snapshot store, one cache client per
game and the reminder jobs, with graceful shutdown.
"""

import asyncio
import signal
from typing import Dict, Mapping, Optional

import structlog

from notecache.framework.cache import DataCache, SnapshotStore, registry_thresholds
from notecache.framework.cache_metrics import CacheMetrics
from notecache.framework.config import ServiceConfig
from notecache.framework.notes import CachedNotes
from notecache.framework.registry import AccountRegistry, EmbedChannel, SecondaryStore, TextChannel
from notecache.reminders.dailies import DailiesReminder
from notecache.reminders.scheduler import ReminderScheduler
from notecache.utils.errors import ConfigurationError
from notecache.utils.logging import setup_logging


class NoteCacheService:
    """
    Owns every long-lived component of a notes cache process.

    ``rates`` maps each game platform to its regeneration rate in seconds
    per unit; a cache client is built for each entry.
    """

    def __init__(
        self,
        config: ServiceConfig,
        registry: AccountRegistry,
        rates: Mapping[str, float],
        webhook: Optional[EmbedChannel] = None,
        telegram: Optional[TextChannel] = None,
        secondary: Optional[SecondaryStore] = None,
        metrics: Optional[CacheMetrics] = None,
    ):
        if not rates:
            raise ConfigurationError("at least one platform rate is required", config_key="rates")

        self.config = config
        self.registry = registry
        self.rates = dict(rates)
        self.webhook = webhook
        self.telegram = telegram
        self.secondary = secondary
        self.metrics = metrics or CacheMetrics()
        self.logger = structlog.get_logger(config.service_name)

        self.store: Optional[SnapshotStore] = None
        self.caches: Dict[str, DataCache] = {}
        self.notes: Optional[CachedNotes] = None
        self.scheduler: Optional[ReminderScheduler] = None
        self.shutdown_event = asyncio.Event()

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self.shutdown_event.set)

    async def startup(self) -> None:
        """Initialize service components."""
        setup_logging(
            self.config.service_name,
            self.config.observability.log_level,
            self.config.observability.log_format,
        )
        self.logger.info("Starting service", environment=self.config.environment)

        self.store = SnapshotStore.from_config(self.config, secondary=self.secondary, metrics=self.metrics)
        await self.store.start()

        resolver = registry_thresholds(self.registry)
        self.caches = {
            platform: DataCache(self.store, rate, threshold_resolver=resolver)
            for platform, rate in self.rates.items()
        }
        self.notes = CachedNotes(self.caches, self.registry)

        reminders = self.config.reminders
        dailies = DailiesReminder(
            self.registry,
            self.notes,
            webhook=self.webhook,
            telegram=self.telegram,
            blacklist=reminders.dailies_blacklist,
        )
        self.scheduler = ReminderScheduler()
        await self.scheduler.start()
        await self.scheduler.schedule_daily(dailies.name, dailies, reminders.dailies_hour, reminders.dailies_minute)

        self.logger.info("Service started", platforms=sorted(self.caches))

    async def shutdown(self) -> None:
        """Gracefully shutdown service."""
        self.logger.info("Shutting down service")

        if self.scheduler:
            await self.scheduler.stop()
        if self.store:
            await self.store.shutdown()

        self.shutdown_event.set()
        self.logger.info("Service shutdown complete")

    async def run(self) -> None:
        """Run until a shutdown signal arrives."""
        self._setup_signal_handlers()
        try:
            await self.startup()
            await self.shutdown_event.wait()
        except Exception as e:
            self.logger.error("Service error", error=str(e), exc_info=True)
            raise
        finally:
            await self.shutdown()
