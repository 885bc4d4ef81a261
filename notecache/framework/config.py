"""
Configuration management for the notes cache.

Provides typed configuration classes with environment variable
injection and validation.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from notecache.utils.errors import ConfigurationError


ENVIRONMENTS = ("local", "dev", "staging", "prod")


@dataclass
class CacheConfig:
    """Snapshot cache configuration."""
    expiration_ms: int = field(default_factory=lambda: int(os.getenv("NOTECACHE_EXPIRATION_MS", "3600000")))
    sweep_interval_seconds: float = field(default_factory=lambda: float(os.getenv("NOTECACHE_SWEEP_INTERVAL_SECONDS", "3600")))
    secondary_enabled: bool = field(default_factory=lambda: os.getenv("NOTECACHE_SECONDARY_ENABLED", "true").lower() == "true")
    key_prefix: str = field(default_factory=lambda: os.getenv("NOTECACHE_KEY_PREFIX", "notes"))

    def __post_init__(self):
        if self.expiration_ms <= 0:
            raise ConfigurationError("expiration_ms must be positive", config_key="expiration_ms", config_value=self.expiration_ms)
        if self.sweep_interval_seconds <= 0:
            raise ConfigurationError(
                "sweep_interval_seconds must be positive",
                config_key="sweep_interval_seconds",
                config_value=self.sweep_interval_seconds,
            )


@dataclass
class DatabaseConfig:
    """Secondary store configuration."""
    redis_url: str = field(default_factory=lambda: os.getenv("NOTECACHE_REDIS_URL", "redis://localhost:6379/0"))
    redis_max_connections: int = field(default_factory=lambda: int(os.getenv("NOTECACHE_REDIS_MAX_CONNECTIONS", "20")))
    redis_timeout: int = field(default_factory=lambda: int(os.getenv("NOTECACHE_REDIS_TIMEOUT", "30")))


@dataclass
class ObservabilityConfig:
    """Observability configuration."""
    log_level: str = field(default_factory=lambda: os.getenv("NOTECACHE_LOG_LEVEL", "info"))
    log_format: str = field(default_factory=lambda: os.getenv("NOTECACHE_LOG_FORMAT", "json"))


@dataclass
class ReminderConfig:
    """Reminder job configuration."""
    dailies_hour: int = field(default_factory=lambda: int(os.getenv("NOTECACHE_DAILIES_HOUR", "21")))
    dailies_minute: int = field(default_factory=lambda: int(os.getenv("NOTECACHE_DAILIES_MINUTE", "0")))
    dailies_blacklist: List[str] = field(
        default_factory=lambda: [
            name.strip()
            for name in os.getenv("NOTECACHE_DAILIES_BLACKLIST", "honkai,tot").split(",")
            if name.strip()
        ]
    )

    def __post_init__(self):
        if not 0 <= self.dailies_hour <= 23:
            raise ConfigurationError("dailies_hour must be 0-23", config_key="dailies_hour", config_value=self.dailies_hour)
        if not 0 <= self.dailies_minute <= 59:
            raise ConfigurationError("dailies_minute must be 0-59", config_key="dailies_minute", config_value=self.dailies_minute)


@dataclass
class ServiceConfig:
    """Base service configuration."""
    service_name: str
    environment: str = field(default_factory=lambda: os.getenv("NOTECACHE_ENV", "local"))

    # Sub-configurations
    cache: CacheConfig = field(default_factory=CacheConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    reminders: ReminderConfig = field(default_factory=ReminderConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.service_name:
            raise ConfigurationError("service_name is required", config_key="service_name")

        if self.environment not in ENVIRONMENTS:
            raise ConfigurationError(f"Invalid environment: {self.environment}", config_key="environment", config_value=self.environment)

    @classmethod
    def from_env(cls, service_name: str = "notecache") -> "ServiceConfig":
        """Create configuration from environment variables."""
        return cls(service_name=service_name)

    def redis_url(self) -> Optional[str]:
        """Redis URL when the secondary tier is enabled."""
        return self.database.redis_url if self.cache.secondary_enabled else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "service_name": self.service_name,
            "environment": self.environment,
            "cache": {
                "expiration_ms": self.cache.expiration_ms,
                "sweep_interval_seconds": self.cache.sweep_interval_seconds,
                "secondary_enabled": self.cache.secondary_enabled,
                "key_prefix": self.cache.key_prefix,
            },
            "database": {
                "redis_url": self.database.redis_url,
                "redis_max_connections": self.database.redis_max_connections,
                "redis_timeout": self.database.redis_timeout,
            },
            "observability": {
                "log_level": self.observability.log_level,
                "log_format": self.observability.log_format,
            },
            "reminders": {
                "dailies_hour": self.reminders.dailies_hour,
                "dailies_minute": self.reminders.dailies_minute,
                "dailies_blacklist": list(self.reminders.dailies_blacklist),
            },
        }
