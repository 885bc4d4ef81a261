"""Snapshot projection: advances cached notes by elapsed wall-clock time.

A projection either returns a copy of the snapshot with its counters moved
forward to ``now_ms`` or an ``InvalidationReason`` telling the store that the
cached data can no longer stand in for a real query. Nothing here performs
I/O; persistence is the store's job.
"""

import copy
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from notecache.schemas.models import ResourcePool, SecondaryCurrency, Snapshot, TimedTask

# Resource within this many units of its maximum counts as almost full.
ALMOST_FULL_MARGIN = 10


class InvalidationReason(str, Enum):
    """Why a projected snapshot was discarded."""
    EXPIRED = "expired"
    RESOURCE_FULL = "resource_full"
    ALMOST_FULL = "almost_full"
    ABOVE_THRESHOLD = "above_threshold"
    TASK_COMPLETED = "task_completed"
    ROTATION_FINISHED = "rotation_finished"
    CURRENCY_FULL = "currency_full"
    CURRENCY_RECOVERED = "currency_recovered"


@dataclass
class Projection:
    """Outcome of projecting a snapshot to the current time."""
    snapshot: Optional[Snapshot]
    reason: Optional[InvalidationReason] = None

    @property
    def invalidated(self) -> bool:
        return self.reason is not None


def _whole_seconds(seconds: float) -> int:
    # half-up, so 0.5s counts as a full second
    return int(math.floor(seconds + 0.5))


def _advance_resource_pool(
    pool: ResourcePool,
    elapsed_seconds: float,
    rate: float,
    threshold: Optional[int],
) -> Optional[InvalidationReason]:
    # carry rounded to 9 places; split reads sum like one long read
    pool.fractional_accumulator = round(pool.fractional_accumulator + elapsed_seconds / rate, 9)

    gained = math.floor(pool.fractional_accumulator)
    pool.current_amount = min(pool.max_amount, pool.current_amount + gained)
    pool.fractional_accumulator -= gained
    pool.recovery_time_seconds = max(0, pool.recovery_time_seconds - _whole_seconds(elapsed_seconds))

    if threshold is None:
        threshold = pool.max_amount

    above_threshold = pool.current_amount > threshold
    if pool.current_amount == pool.max_amount:
        return InvalidationReason.RESOURCE_FULL
    if (pool.max_amount - pool.current_amount) <= ALMOST_FULL_MARGIN and above_threshold:
        return InvalidationReason.ALMOST_FULL
    if above_threshold:
        return InvalidationReason.ABOVE_THRESHOLD
    return None


def _advance_timed_tasks(tasks: List[TimedTask], elapsed_seconds: float) -> Optional[InvalidationReason]:
    step = _whole_seconds(elapsed_seconds)
    completed = False
    for task in tasks:
        task.remaining_time_seconds = max(0, task.remaining_time_seconds - step)
        if task.remaining_time_seconds == 0:
            completed = True

    return InvalidationReason.TASK_COMPLETED if completed else None


def _advance_secondary_currency(currency: SecondaryCurrency, elapsed_seconds: float) -> Optional[InvalidationReason]:
    currency.recovery_time_seconds = max(0, currency.recovery_time_seconds - _whole_seconds(elapsed_seconds))

    if currency.current_amount == currency.max_amount:
        return InvalidationReason.CURRENCY_FULL
    if currency.recovery_time_seconds == 0:
        return InvalidationReason.CURRENCY_RECOVERED
    return None


def project(
    snapshot: Snapshot,
    now_ms: int,
    rate: float,
    expiration_ms: int,
    threshold: Optional[int] = None,
) -> Projection:
    """
    Project ``snapshot`` forward to ``now_ms``.

    Args:
        snapshot: Stored snapshot; left untouched.
        now_ms: Current time in epoch milliseconds.
        rate: Seconds needed to regenerate one resource unit.
        expiration_ms: Age beyond which the snapshot is discarded outright.
        threshold: Resource level above which the projection is not trusted.
            Falls back to the snapshot's own threshold, then to the maximum.

    Returns:
        A ``Projection`` carrying either the advanced copy or the reason
        it was invalidated.
    """
    age_ms = now_ms - snapshot.last_update
    if age_ms > expiration_ms:
        return Projection(snapshot=None, reason=InvalidationReason.EXPIRED)

    elapsed_seconds = max(0, age_ms) / 1000
    projected = copy.deepcopy(snapshot)
    if threshold is None:
        threshold = projected.threshold

    reason = None
    if projected.resource_pool is not None:
        reason = _advance_resource_pool(projected.resource_pool, elapsed_seconds, rate, threshold)

    if reason is None and projected.timed_tasks:
        reason = _advance_timed_tasks(projected.timed_tasks, elapsed_seconds)

    if reason is None and projected.rotation_flag is not None and projected.rotation_flag.is_finished:
        reason = InvalidationReason.ROTATION_FINISHED

    if reason is None and projected.secondary_currency is not None:
        reason = _advance_secondary_currency(projected.secondary_currency, elapsed_seconds)

    if reason is not None:
        return Projection(snapshot=None, reason=reason)

    projected.last_update = now_ms
    return Projection(snapshot=projected)
