"""Tests for the safe-parse facade."""

import logging

import pytest

from maeple_ingest.config.domains import ParsingConfig
from maeple_ingest.core.observability.events import ParseOutcomeEvent
from maeple_ingest.core.observability.reporter import set_default_reporter, get_default_reporter
from maeple_ingest.core.parsing.facade import safe_parse_response
from maeple_ingest.core.parsing.results import Failure, Success, is_success
from maeple_ingest.core.schemas.base import ResponseSchema


class Mood(ResponseSchema):
    mood: str


class TestSafeParseResponse:
    """End-to-end normalize + validate behaviour."""

    def test_fenced_json_succeeds(self, recorder):
        result = safe_parse_response(
            '```json\n{"mood":"calm"}\n```', Mood, context="mood", reporter=recorder
        )

        assert isinstance(result, Success)
        assert result.data == Mood(mood="calm")
        assert is_success(result)

    def test_failure_carries_context(self, recorder):
        result = safe_parse_response("not json", Mood, context="journal", reporter=recorder)

        assert isinstance(result, Failure)
        assert result.error.context == "journal"
        assert result.error.occurred_at is not None

    def test_error_path_is_idempotent(self, recorder):
        first = safe_parse_response('{"mood": 3}', Mood, context="mood", reporter=recorder)
        second = safe_parse_response('{"mood": 3}', Mood, context="mood", reporter=recorder)

        assert first.error.message == second.error.message
        assert first.error.context == second.error.context
        assert first.error == second.error

    @pytest.mark.parametrize("raw", [None, 12, b'{"mood": "calm"}', {"mood": "calm"}])
    def test_non_text_never_raises(self, raw, recorder):
        result = safe_parse_response(raw, Mood, context="mood", reporter=recorder)

        assert isinstance(result, Failure)
        assert result.error.kind == "decode"


class TestFallbackIsNeverApplied:
    """A caller's fallback is carried, not substituted."""

    def test_failure_returned_with_fallback_attached(self, recorder):
        fallback = Mood(mood="unknown")

        result = safe_parse_response(
            "garbage", Mood, context="mood", on_failure_fallback=fallback, reporter=recorder
        )

        assert isinstance(result, Failure)
        assert result.fallback is fallback
        assert not result.ok

    def test_success_ignores_fallback(self, recorder):
        result = safe_parse_response(
            '{"mood": "calm"}',
            Mood,
            context="mood",
            on_failure_fallback=Mood(mood="unknown"),
            reporter=recorder,
        )

        assert result.data.mood == "calm"

    def test_unwrap_raises_original_cause(self, recorder):
        result = safe_parse_response("garbage", Mood, context="mood", reporter=recorder)

        with pytest.raises(Exception) as excinfo:
            result.unwrap()
        assert excinfo.value is result.error.original_cause


class TestOutcomeEvents:
    """Exactly one outcome event per call."""

    def test_success_event(self, recorder):
        raw = '{"mood": "calm"}'

        safe_parse_response(raw, Mood, context="mood", reporter=recorder)

        events = recorder.of_type(ParseOutcomeEvent)
        assert len(events) == 1
        assert events[0].context == "mood"
        assert events[0].success is True
        assert events[0].response_length == len(raw)
        assert events[0].duration_ms >= 0
        assert events[0].error_kind is None

    def test_failure_event(self, recorder):
        safe_parse_response('{"mood": null}', Mood, context="mood", reporter=recorder)

        (event,) = recorder.of_type(ParseOutcomeEvent)
        assert event.success is False
        assert event.error_kind == "schema"

    def test_default_reporter_used_when_none_given(self, recorder):
        previous = get_default_reporter()
        set_default_reporter(recorder)
        try:
            safe_parse_response('{"mood": "calm"}', Mood, context="mood")
        finally:
            set_default_reporter(previous)

        assert len(recorder.events) == 1


class TestFailureLogging:
    """Failure logs carry a redacted, truncated preview."""

    def test_warning_redacts_preview(self, recorder, caplog):
        raw = "contact me at someone@example.com " + "x" * 500

        with caplog.at_level(logging.WARNING, logger="maeple_ingest.core.parsing.facade"):
            safe_parse_response(
                raw,
                Mood,
                context="mood",
                reporter=recorder,
                config=ParsingConfig(log_preview_chars=60),
            )

        assert "someone@example.com" not in caplog.text
        assert "[REDACTED:EMAIL]" in caplog.text
        assert "more chars" in caplog.text
