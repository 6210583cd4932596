"""Shared fixtures for CLI command tests."""

import os

import pytest
from click.testing import CliRunner

from maeple_ingest.core.sync.queue import SyncQueue
from maeple_ingest.core.sync.storage import FileSyncStore


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cli_env(monkeypatch, tmp_path):
    """No config file in the working directory and no MAEPLE_* overrides."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("MAEPLE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def seeded_queue_dir(queue_dir):
    """A durable queue directory holding two pending entries."""
    queue = SyncQueue(FileSyncStore(queue_dir))
    queue.enqueue({"context": "mood", "analysis": None, "original_input": "tired"})
    queue.enqueue({"context": "facs", "analysis": None, "original_input": "frame-17"})
    return queue_dir
