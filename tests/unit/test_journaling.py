"""Tests for overview generation and tangent discovery."""

import json

import pytest

from unpack.features.journaling.models import TangentCandidate
from unpack.features.journaling.overview import OVERVIEW_FALLBACK, OverviewGenerator
from unpack.features.journaling.tangents import (
    FALLBACK_EMOTION,
    FALLBACK_TANGENT_NAME,
    TangentDiscoverer,
    parse_tangents,
)
from unpack.shared.errors import DiscoveryFailure
from tests.fixtures.fakes import FakeChatModel

ENTRY_TEXT = (
    "Work has been overwhelming this week and I barely slept. "
    "On Sunday I called my sister and we laughed for an hour."
)


def _tangents_json(count):
    return json.dumps({
        "tangents": [
            {"name": f"Thread {i}", "emotion": "Joy", "excerpt": f"line {i}"}
            for i in range(count)
        ]
    })


class TestOverviewGenerator:
    @pytest.mark.asyncio
    async def test_returns_model_overview(self):
        model = FakeChatModel(["You wrote about a demanding week and a warm call with your sister."])
        overview = await OverviewGenerator(model=model).summarize(ENTRY_TEXT)

        assert overview.startswith("You wrote about")
        assert model.calls[0]["operation"] == "overview"

    @pytest.mark.asyncio
    async def test_model_failure_uses_fallback(self, failing_model):
        assert await OverviewGenerator(model=failing_model).summarize(ENTRY_TEXT) == OVERVIEW_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_output_uses_fallback(self):
        assert await OverviewGenerator(model=FakeChatModel([""])).summarize(ENTRY_TEXT) == OVERVIEW_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_text_skips_model(self, fake_model):
        assert await OverviewGenerator(model=fake_model).summarize("  ") == OVERVIEW_FALLBACK
        assert fake_model.calls == []


class TestParseTangents:
    def test_object_form(self):
        candidates = parse_tangents(_tangents_json(2))
        assert [c.name for c in candidates] == ["Thread 0", "Thread 1"]
        assert all(c.emotion == "joy" for c in candidates)

    def test_bare_list_form(self):
        raw = json.dumps([{"name": "Sleep", "emotion": "sadness", "excerpt": "barely slept"}])
        assert parse_tangents(raw) == [TangentCandidate(name="Sleep", emotion="sadness", excerpt="barely slept")]

    def test_truncates_to_five(self):
        assert len(parse_tangents(_tangents_json(8))) == 5

    def test_skips_items_without_name_or_emotion(self):
        raw = json.dumps({"tangents": [
            {"name": "", "emotion": "joy"},
            {"name": "Family", "emotion": "  "},
            {"name": "Family", "emotion": "trust"},
            "not an object",
        ]})
        candidates = parse_tangents(raw)
        assert len(candidates) == 1
        assert candidates[0].name == "Family"
        assert candidates[0].excerpt == ""

    def test_json_wrapped_in_prose(self):
        raw = "Here you go:\n" + _tangents_json(1) + "\nHope that helps."
        assert parse_tangents(raw)[0].name == "Thread 0"

    def test_garbage_raises(self):
        with pytest.raises(DiscoveryFailure):
            parse_tangents("no json here")

    def test_no_valid_items_raises(self):
        with pytest.raises(DiscoveryFailure):
            parse_tangents(json.dumps({"tangents": []}))


class TestTangentDiscoverer:
    @pytest.mark.asyncio
    async def test_uses_json_mode(self):
        model = FakeChatModel([_tangents_json(3)])
        candidates = await TangentDiscoverer(model=model).discover(ENTRY_TEXT)

        assert len(candidates) == 3
        assert model.calls[0]["json_mode"] is True

    @pytest.mark.asyncio
    async def test_result_size_is_between_one_and_five(self):
        model = FakeChatModel([_tangents_json(9)])
        candidates = await TangentDiscoverer(model=model).discover(ENTRY_TEXT)
        assert 1 <= len(candidates) <= 5

    @pytest.mark.asyncio
    async def test_model_failure_yields_single_fallback(self, failing_model):
        candidates = await TangentDiscoverer(model=failing_model).discover(ENTRY_TEXT)

        assert len(candidates) == 1
        assert candidates[0].name == FALLBACK_TANGENT_NAME
        assert candidates[0].emotion == FALLBACK_EMOTION
        assert candidates[0].excerpt == ENTRY_TEXT[:100]

    @pytest.mark.asyncio
    async def test_unparsable_output_yields_fallback(self):
        candidates = await TangentDiscoverer(model=FakeChatModel(["{broken"])).discover(ENTRY_TEXT)
        assert [c.name for c in candidates] == [FALLBACK_TANGENT_NAME]

    @pytest.mark.asyncio
    async def test_empty_text_skips_model(self, fake_model):
        candidates = await TangentDiscoverer(model=fake_model).discover("")
        assert candidates[0].name == FALLBACK_TANGENT_NAME
        assert candidates[0].excerpt == ""
        assert fake_model.calls == []


class TestModels:
    def test_candidate_strips_and_lowercases(self):
        candidate = TangentCandidate(name="  Career Doubts ", emotion=" Fear ", excerpt=None)
        assert candidate.name == "Career Doubts"
        assert candidate.emotion == "fear"
        assert candidate.excerpt == ""
