"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio

from notecache.framework.cache import DataCache, SnapshotStore
from tests.fixtures.mock_services import FakeClock, MockRedisClient
from tests.fixtures.sample_snapshots import SampleSnapshotGenerator


@pytest.fixture
def clock():
    """Controllable millisecond clock."""
    return FakeClock()


@pytest.fixture
def mock_redis_client():
    """Mock Redis client fixture."""
    return MockRedisClient()


@pytest_asyncio.fixture
async def store(clock, mock_redis_client):
    """Snapshot store backed by the mock Redis client."""
    store = SnapshotStore(secondary=mock_redis_client, clock=clock)
    yield store
    await store.shutdown()


@pytest.fixture
def cache(store):
    """Cache client regenerating one unit per minute."""
    return DataCache(store, rate=60)


@pytest.fixture
def sample_snapshot():
    """Sample snapshot well below its threshold."""
    return SampleSnapshotGenerator.snapshot()


@pytest.fixture
def sample_notes():
    """Sample upstream daily notes."""
    return SampleSnapshotGenerator.notes()
