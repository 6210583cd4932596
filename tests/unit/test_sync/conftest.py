"""Fixtures for sync queue tests."""

import pytest

from maeple_ingest.core.sync.queue import SyncQueue
from maeple_ingest.core.sync.storage import InMemorySyncStore


@pytest.fixture
def store():
    return InMemorySyncStore()


@pytest.fixture
def queue(store, fake_clock, recorder):
    return SyncQueue(
        store,
        max_size=100,
        staleness_seconds=7 * 86400.0,
        delivery_timeout=60.0,
        clock=fake_clock.now,
        reporter=recorder,
    )
