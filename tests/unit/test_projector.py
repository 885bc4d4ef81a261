"""Unit tests for snapshot projection."""

import pytest

from notecache.framework.projector import (
    InvalidationReason,
    _advance_resource_pool,
    _whole_seconds,
    project,
)
from notecache.schemas.models import ResourcePool, Snapshot
from tests.fixtures.sample_snapshots import SampleSnapshotGenerator

T0 = 1_700_000_000_000
HOUR_MS = 3_600_000


def snapshot(**kwargs) -> Snapshot:
    raw = SampleSnapshotGenerator.snapshot(**kwargs)
    raw["last_update"] = T0
    return Snapshot.from_dict(raw)


def seconds(s: float) -> int:
    return T0 + int(s * 1000)


class TestExpiration:
    """Hard expiration on read."""

    def test_bare_snapshot_only_ages(self):
        bare = Snapshot(identity={"uid": 1}, last_update=T0)

        result = project(bare, seconds(120), rate=60, expiration_ms=HOUR_MS)

        assert not result.invalidated
        assert result.snapshot.identity == {"uid": 1}
        assert result.snapshot.last_update == seconds(120)

    def test_past_expiration_invalidates(self):
        result = project(snapshot(), T0 + HOUR_MS + 1, rate=60, expiration_ms=HOUR_MS)

        assert result.invalidated
        assert result.reason == InvalidationReason.EXPIRED
        assert result.snapshot is None

    def test_exactly_at_expiration_is_kept(self):
        result = project(snapshot(current=0), T0 + HOUR_MS, rate=60, expiration_ms=HOUR_MS)

        assert not result.invalidated

    def test_clock_behind_last_update_counts_as_no_time(self):
        result = project(snapshot(current=10), T0 - 5000, rate=60, expiration_ms=HOUR_MS)

        assert result.snapshot.resource_pool.current_amount == 10
        assert result.snapshot.resource_pool.recovery_time_seconds == 9000


class TestResourcePool:
    """Regeneration and threshold rules."""

    def test_regenerates_whole_units_and_keeps_remainder(self):
        result = project(snapshot(current=10), seconds(90), rate=60, expiration_ms=HOUR_MS)

        pool = result.snapshot.resource_pool
        assert pool.current_amount == 11
        assert pool.fractional_accumulator == pytest.approx(0.5)
        assert pool.recovery_time_seconds == 9000 - 90

    def test_fractional_progress_is_conserved_across_reads(self):
        first = project(snapshot(current=10), seconds(90), rate=60, expiration_ms=HOUR_MS).snapshot
        split = project(first, seconds(135), rate=60, expiration_ms=HOUR_MS).snapshot
        single = project(snapshot(current=10), seconds(135), rate=60, expiration_ms=HOUR_MS).snapshot

        assert split.resource_pool.current_amount == single.resource_pool.current_amount == 12
        assert split.resource_pool.fractional_accumulator == pytest.approx(single.resource_pool.fractional_accumulator)
        assert split.resource_pool.recovery_time_seconds == single.resource_pool.recovery_time_seconds

    def test_many_short_reads_carry_whole_units(self):
        current = snapshot(current=10)
        for step in range(1, 11):
            current = project(current, seconds(step), rate=10, expiration_ms=HOUR_MS).snapshot

        assert current.resource_pool.current_amount == 11
        assert current.resource_pool.fractional_accumulator == pytest.approx(0.0)

    def test_gain_is_clamped_at_maximum(self):
        pool = ResourcePool(current_amount=95, max_amount=100, recovery_time_seconds=300)

        reason = _advance_resource_pool(pool, 600, rate=60, threshold=None)

        assert pool.current_amount == 100
        assert pool.recovery_time_seconds == 0
        assert reason == InvalidationReason.RESOURCE_FULL

    def test_full_resource_invalidates(self):
        result = project(snapshot(current=95, maximum=100, threshold=None), seconds(600), rate=60, expiration_ms=HOUR_MS)

        assert result.reason == InvalidationReason.RESOURCE_FULL

    def test_above_threshold_invalidates(self):
        result = project(snapshot(current=81, maximum=100, threshold=80), T0, rate=60, expiration_ms=HOUR_MS)

        assert result.reason == InvalidationReason.ABOVE_THRESHOLD

    def test_almost_full_above_threshold_invalidates(self):
        result = project(snapshot(current=92, maximum=100, threshold=90), T0, rate=60, expiration_ms=HOUR_MS)

        assert result.reason == InvalidationReason.ALMOST_FULL

    def test_almost_full_below_threshold_is_kept(self):
        result = project(snapshot(current=92, maximum=100, threshold=95), T0, rate=60, expiration_ms=HOUR_MS)

        assert not result.invalidated

    def test_at_threshold_is_kept(self):
        result = project(snapshot(current=80, maximum=200, threshold=80), T0, rate=60, expiration_ms=HOUR_MS)

        assert not result.invalidated

    def test_explicit_threshold_overrides_snapshot(self):
        result = project(snapshot(current=60, threshold=150), T0, rate=60, expiration_ms=HOUR_MS, threshold=50)

        assert result.reason == InvalidationReason.ABOVE_THRESHOLD

    def test_regeneration_crossing_threshold_invalidates(self):
        result = project(snapshot(current=78, maximum=200, threshold=80), seconds(180), rate=60, expiration_ms=HOUR_MS)

        assert result.reason == InvalidationReason.ABOVE_THRESHOLD


class TestTimedTasks:
    """Timed task countdown."""

    def test_tasks_count_down(self):
        base = snapshot(timed_tasks=[{"remaining_time_seconds": 30}, {"remaining_time_seconds": 600}])

        result = project(base, seconds(29), rate=60, expiration_ms=HOUR_MS)

        remaining = [t.remaining_time_seconds for t in result.snapshot.timed_tasks]
        assert remaining == [1, 571]

    def test_completed_task_invalidates(self):
        base = snapshot(timed_tasks=[{"remaining_time_seconds": 30}])

        result = project(base, seconds(31), rate=60, expiration_ms=HOUR_MS)

        assert result.reason == InvalidationReason.TASK_COMPLETED

    def test_already_completed_task_invalidates(self):
        base = snapshot(timed_tasks=[{"remaining_time_seconds": 600}, {"remaining_time_seconds": 0}])

        assert project(base, T0, rate=60, expiration_ms=HOUR_MS).reason == InvalidationReason.TASK_COMPLETED

    def test_empty_task_list_is_ignored(self):
        result = project(snapshot(timed_tasks=[]), seconds(10), rate=60, expiration_ms=HOUR_MS)

        assert not result.invalidated
        assert result.snapshot.timed_tasks == []


class TestRotationAndCurrency:
    """Rotation flag and secondary currency."""

    def test_finished_rotation_invalidates(self):
        base = snapshot(rotation_flag={"state": "Finished"})

        assert project(base, T0, rate=60, expiration_ms=HOUR_MS).reason == InvalidationReason.ROTATION_FINISHED

    def test_waiting_rotation_is_kept(self):
        base = snapshot(rotation_flag={"state": "Wait"})

        assert not project(base, T0, rate=60, expiration_ms=HOUR_MS).invalidated

    def test_currency_recovery_counts_down(self):
        base = snapshot(secondary_currency={"current_amount": 300, "max_amount": 2400, "recovery_time_seconds": 1000})

        result = project(base, seconds(100), rate=60, expiration_ms=HOUR_MS)

        assert result.snapshot.secondary_currency.recovery_time_seconds == 900
        assert result.snapshot.secondary_currency.current_amount == 300

    def test_full_currency_invalidates(self):
        base = snapshot(secondary_currency={"current_amount": 2400, "max_amount": 2400, "recovery_time_seconds": 0})

        assert project(base, T0, rate=60, expiration_ms=HOUR_MS).reason == InvalidationReason.CURRENCY_FULL

    def test_recovered_currency_invalidates(self):
        base = snapshot(secondary_currency={"current_amount": 300, "max_amount": 2400, "recovery_time_seconds": 50})

        assert project(base, seconds(50), rate=60, expiration_ms=HOUR_MS).reason == InvalidationReason.CURRENCY_RECOVERED


def test_projection_leaves_input_untouched():
    base = snapshot(current=10, timed_tasks=[{"remaining_time_seconds": 600}])

    result = project(base, seconds(300), rate=60, expiration_ms=HOUR_MS)

    assert result.snapshot.resource_pool.current_amount == 15
    assert base.resource_pool.current_amount == 10
    assert base.timed_tasks[0].remaining_time_seconds == 600
    assert base.last_update == T0


def test_whole_seconds_rounds_half_up():
    assert _whole_seconds(0.4) == 0
    assert _whole_seconds(0.5) == 1
    assert _whole_seconds(2.5) == 3
