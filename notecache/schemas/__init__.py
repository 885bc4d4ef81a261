"""
Schemas for the notes cache.

Defines the cached snapshot and the account record exchanged with the
registry.
"""

from .models import (
    Account,
    AccountKey,
    ResourcePool,
    RotationFlag,
    SecondaryCurrency,
    Snapshot,
    TimedTask,
)

__all__ = [
    "Account",
    "AccountKey",
    "ResourcePool",
    "RotationFlag",
    "SecondaryCurrency",
    "Snapshot",
    "TimedTask",
]
