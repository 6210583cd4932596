"""Tests for the capture pipeline.

Verifies:
- A valid reply yields an AVAILABLE outcome with the record queued for sync
- A malformed reply yields "analysis unavailable", keeps the user's input and
  queues the capture with a null analysis instead of fabricated data
- Breaker and queue-capacity errors reach the caller
"""

import json

import pytest

from maeple_ingest.core.analysis import AnalysisService, AnalysisStatus
from maeple_ingest.core.errors import CircuitOpenError, QueueFullError
from maeple_ingest.core.observability import ParseOutcomeEvent
from maeple_ingest.core.providers import GuardedProvider
from maeple_ingest.core.resilience import CircuitBreaker
from maeple_ingest.core.schemas import MoodAnalysis
from maeple_ingest.core.sync.queue import SyncQueue

JOURNAL = "Office was loud again, skipped lunch, head is pounding."


class CannedProvider:
    name = "canned"

    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    async def complete_text(self, prompt):
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def sync_queue(fake_clock, recorder):
    return SyncQueue(clock=fake_clock.now, reporter=recorder)


def _service(reply, sync_queue, recorder):
    return AnalysisService(CannedProvider(reply), sync_queue, reporter=recorder)


class TestAvailable:
    @pytest.mark.asyncio
    async def test_record_queued(self, mood_payload, sync_queue, recorder):
        reply = "Here is the analysis:\n```json\n" + json.dumps(mood_payload) + "\n```"
        service = _service(reply, sync_queue, recorder)

        outcome = await service.analyze(
            "Analyze: " + JOURNAL, MoodAnalysis, context="mood", original_input=JOURNAL
        )

        assert outcome.available
        assert isinstance(outcome.record, MoodAnalysis)
        entry = sync_queue.get(outcome.entry_id)
        assert entry.payload["analysis"]["moodScore"] == 2
        assert entry.payload["analysis_status"] == "available"
        assert entry.payload["original_input"] == JOURNAL
        assert entry.payload["context"] == "mood"

    @pytest.mark.asyncio
    async def test_parse_outcome_reported(self, mood_payload, sync_queue, recorder):
        service = _service(json.dumps(mood_payload), sync_queue, recorder)

        await service.analyze("p", MoodAnalysis, context="mood", original_input=JOURNAL)

        outcomes = recorder.of_type(ParseOutcomeEvent)
        assert len(outcomes) == 1
        assert outcomes[0].success is True


class TestUnavailable:
    @pytest.mark.asyncio
    async def test_malformed_reply_keeps_input(self, sync_queue, recorder):
        service = _service("Sorry, I can't help with that.", sync_queue, recorder)

        outcome = await service.analyze("p", MoodAnalysis, context="mood", original_input=JOURNAL)

        assert outcome.status == AnalysisStatus.UNAVAILABLE
        assert outcome.record is None
        assert outcome.original_input == JOURNAL
        assert outcome.error.kind == "decode"
        entry = sync_queue.get(outcome.entry_id)
        assert entry.payload["analysis"] is None
        assert entry.payload["analysis_status"] == "unavailable"
        assert entry.payload["original_input"] == JOURNAL

    @pytest.mark.asyncio
    async def test_fallback_offered_not_applied(self, mood_payload, sync_queue, recorder):
        mood_payload["moodScore"] = "bad"
        fallback = {"moodLabel": "Unknown"}
        service = _service(json.dumps(mood_payload), sync_queue, recorder)

        outcome = await service.analyze(
            "p", MoodAnalysis, context="mood", original_input=JOURNAL, fallback=fallback
        )

        assert outcome.fallback is fallback
        assert outcome.record is None
        assert sync_queue.get(outcome.entry_id).payload["analysis"] is None
        assert outcome.error.kind == "schema"

    @pytest.mark.asyncio
    async def test_to_dict(self, sync_queue, recorder):
        service = _service("{", sync_queue, recorder)

        outcome = await service.analyze("p", MoodAnalysis, context="mood", original_input=JOURNAL)
        data = outcome.to_dict()

        assert data["status"] == "unavailable"
        assert data["record"] is None
        assert data["error"]["kind"] == "decode"


class TestPropagation:
    @pytest.mark.asyncio
    async def test_open_circuit_propagates(self, sync_queue, recorder, fake_clock):
        breaker = CircuitBreaker(name="canned", clock=fake_clock.monotonic, reporter=recorder)
        for _ in range(5):
            breaker.record_failure()
        provider = CannedProvider("{}")
        service = AnalysisService(GuardedProvider(provider, breaker), sync_queue, reporter=recorder)

        with pytest.raises(CircuitOpenError):
            await service.analyze("p", MoodAnalysis, context="mood", original_input=JOURNAL)

        assert provider.prompts == []
        assert len(sync_queue) == 0

    @pytest.mark.asyncio
    async def test_full_queue_propagates(self, mood_payload, fake_clock, recorder):
        tiny = SyncQueue(max_size=1, clock=fake_clock.now, reporter=recorder)
        tiny.enqueue({"n": 0})
        service = _service(json.dumps(mood_payload), tiny, recorder)

        with pytest.raises(QueueFullError):
            await service.analyze("p", MoodAnalysis, context="mood", original_input=JOURNAL)
