"""Shared fixtures for maeple-ingest tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from maeple_ingest.config.settings import set_config
from maeple_ingest.core.observability.reporter import RecordingReporter


class FakeClock:
    """Manually advanced clock exposing both monotonic seconds and wall time."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)):
        self._start = start
        self._elapsed = 0.0

    def advance(self, seconds: float) -> None:
        self._elapsed += seconds

    def monotonic(self) -> float:
        return 1000.0 + self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recorder():
    return RecordingReporter()


@pytest.fixture
def queue_dir(tmp_path):
    path = tmp_path / "queue"
    path.mkdir()
    return path


@pytest.fixture(autouse=True)
def _reset_global_config():
    yield
    set_config(None)


@pytest.fixture
def mood_payload():
    """A well-formed mood analysis as a provider would return it (camelCase keys)."""
    return {
        "moodScore": 2,
        "moodLabel": "Drained",
        "neuroMetrics": {"sensoryLoad": 7.5, "contextSwitches": 12, "maskingScore": 6},
        "activityTypes": ["work", "commute"],
        "strengths": ["noticed overload early"],
        "summary": "A loud office day with many interruptions.",
        "strategies": [
            {
                "id": "s1",
                "title": "Quiet reset",
                "action": "Take ten minutes with noise-cancelling headphones.",
                "type": "SENSORY",
                "relevanceScore": 0.9,
            }
        ],
        "analysisReasoning": "Mentions of noise and fatigue dominate the entry.",
        "medications": [{"name": "Melatonin", "amount": "3", "unit": "mg"}],
        "symptoms": [{"name": "headache", "severity": 4}],
    }


@pytest.fixture
def facs_payload():
    """A well-formed FACS analysis for a single captured frame."""
    return {
        "confidence": 0.82,
        "actionUnits": [
            {"auCode": "AU4", "name": "Brow Lowerer", "intensity": "C", "intensityNumeric": 3, "confidence": 0.8},
            {"auCode": "AU12", "name": "Lip Corner Puller", "intensity": "A", "intensityNumeric": 1, "confidence": 0.6},
        ],
        "facsInterpretation": {
            "duchennSmile": False,
            "socialSmile": True,
            "maskingIndicators": ["AU12 without AU6"],
            "fatigueIndicators": [],
            "tensionIndicators": ["AU4"],
        },
        "observations": [
            {"category": "tension", "value": "furrowed brow", "evidence": "AU4 at C intensity"},
        ],
        "lighting": "dim overhead",
        "lightingSeverity": "moderate",
        "environmentalClues": ["screen glare"],
        "jawTension": 6,
    }
