"""
Storage abstractions for the notes cache.

Provides:
- Redis (secondary snapshot tier)
- SecondaryTier (best-effort wrapper with local error recovery)
"""

from .redis import RedisClient, RedisConfig
from .secondary import SecondaryTier, StoreResult

__all__ = [
    "RedisClient",
    "RedisConfig",
    "SecondaryTier",
    "StoreResult",
]
