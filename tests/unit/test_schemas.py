"""Unit tests for snapshot schemas."""

import pytest

from notecache.schemas.models import Account, Snapshot
from notecache.utils.errors import ValidationError
from tests.fixtures.sample_snapshots import SampleSnapshotGenerator


class TestSnapshotValidation:
    """Snapshot.from_dict validation."""

    def test_valid_snapshot(self):
        snapshot = Snapshot.from_dict(SampleSnapshotGenerator.snapshot(
            timed_tasks=[{"remaining_time_seconds": "120"}],
            rotation_flag={"state": "Wait"},
        ))

        assert snapshot.resource_pool.current_amount == 10
        assert snapshot.timed_tasks[0].remaining_time_seconds == 120
        assert snapshot.rotation_flag.is_finished is False
        assert snapshot.secondary_currency is None

    def test_missing_sub_field(self):
        raw = SampleSnapshotGenerator.snapshot()
        del raw["resource_pool"]["max_amount"]

        with pytest.raises(ValidationError) as exc_info:
            Snapshot.from_dict(raw)

        assert exc_info.value.field == "resource_pool.max_amount"
        assert exc_info.value.to_dict()["error_code"] == "VALIDATION_ERROR"

    def test_current_above_maximum(self):
        with pytest.raises(ValidationError):
            Snapshot.from_dict(SampleSnapshotGenerator.snapshot(current=170, maximum=160))

    def test_negative_counter(self):
        with pytest.raises(ValidationError):
            Snapshot.from_dict(SampleSnapshotGenerator.snapshot(timed_tasks=[{"remaining_time_seconds": -1}]))

    def test_fractional_accumulator_out_of_range(self):
        raw = SampleSnapshotGenerator.snapshot()
        raw["resource_pool"]["fractional_accumulator"] = 1.0

        with pytest.raises(ValidationError):
            Snapshot.from_dict(raw)

    def test_timed_tasks_must_be_a_list(self):
        with pytest.raises(ValidationError):
            Snapshot.from_dict(SampleSnapshotGenerator.snapshot(timed_tasks={"remaining_time_seconds": 5}))

    def test_rotation_flag_requires_state(self):
        with pytest.raises(ValidationError):
            Snapshot.from_dict(SampleSnapshotGenerator.snapshot(rotation_flag={}))

    def test_non_mapping(self):
        with pytest.raises(ValidationError):
            Snapshot.from_dict(["not", "a", "snapshot"])


class TestNotesAdapter:
    """Mapping between upstream notes and snapshots."""

    def test_from_notes_maps_sections(self, sample_notes):
        snapshot = Snapshot.from_notes(sample_notes)

        assert snapshot.resource_pool.current_amount == 40
        assert snapshot.resource_pool.recovery_time_seconds == 57600
        assert [t.remaining_time_seconds for t in snapshot.timed_tasks] == [3600, 7200]
        assert snapshot.rotation_flag.state == "Wait"
        assert snapshot.secondary_currency.max_amount == 2400
        assert set(snapshot.identity) == {"uid", "nickname", "assets", "dailies"}

    def test_to_notes_restores_upstream_shape(self, sample_notes):
        notes = Snapshot.from_notes(sample_notes).to_notes()

        assert notes["stamina"]["currentStamina"] == 40
        assert notes["stamina"]["maxStamina"] == 160
        assert notes["expedition"]["list"] == [{"remaining_time": 3600}, {"remaining_time": 7200}]
        assert notes["shop"] == {"state": "Wait"}
        assert notes["realm"]["currentCoin"] == 300
        assert notes["dailies"] == sample_notes["dailies"]

    def test_threshold_is_read_from_stamina(self, sample_notes):
        sample_notes["stamina"]["threshold"] = 120

        snapshot = Snapshot.from_notes(sample_notes)

        assert snapshot.threshold == 120
        assert snapshot.to_notes()["stamina"]["threshold"] == 120

    def test_notes_without_optional_sections(self):
        snapshot = Snapshot.from_notes({"uid": 1, "assets": {"game": "Zenless"}})

        assert snapshot.resource_pool is None
        assert snapshot.timed_tasks is None
        assert snapshot.identity == {"uid": 1, "assets": {"game": "Zenless"}}

    def test_malformed_expedition(self, sample_notes):
        sample_notes["expedition"] = {"list": [{"avatar": "x"}]}

        with pytest.raises(ValidationError):
            Snapshot.from_notes(sample_notes)


def test_snapshot_dict_round_trip():
    snapshot = Snapshot.from_dict(SampleSnapshotGenerator.snapshot(
        secondary_currency={"current_amount": 1, "max_amount": 2, "recovery_time_seconds": 3},
    ))

    assert Snapshot.from_dict(snapshot.to_dict()) == snapshot


def test_account_mention():
    account = Account.from_dict({"uid": 1, "platform": "genshin", "discord_user_id": "42"})

    assert account.mention == "<@42>"
    assert Account(uid=2, platform="genshin").mention is None
    assert account.to_dict()["dailies_check"] is True
