"""
Unit tests for TaskRunner: cache, provider, validation and heuristic fallback.
"""

import asyncio

import pytest

from product_optimizer.core.exceptions import ProviderException
from product_optimizer.models import (
    GapResult,
    LongTailSuggestion,
    MetaSuggestion,
    TaskRequest,
)
from product_optimizer.processing import TaskRunner, parse_completion
from product_optimizer.services import TaskCache
from conftest import FakeProvider, json_reply


LONG_TAIL_REPLY = [
    {"phrase": "silent wireless mouse for office", "score": 0.8, "rationale": "quiet"},
    {"phrase": "ergonomic mouse right hand", "score": 0.7},
]


class SlowProvider:
    def __init__(self):
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        await asyncio.sleep(1.0)
        return "[]"


def runner_with(provider=None, cache=None, timeout=1.0) -> TaskRunner:
    return TaskRunner(cache=cache or TaskCache(), provider=provider, provider_timeout=timeout)


class TestParseCompletion:
    def test_plain_json(self):
        assert parse_completion('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert parse_completion(json_reply([1, 2], fenced=True)) == [1, 2]

    def test_bare_fence(self):
        assert parse_completion("```\n[3]\n```") == [3]

    def test_invalid_json(self):
        with pytest.raises(ProviderException):
            parse_completion("here are your keywords: none")


class TestProviderPath:
    @pytest.mark.asyncio
    async def test_valid_long_tail(self, sample_record):
        provider = FakeProvider(default=json_reply(LONG_TAIL_REPLY))
        runner = runner_with(provider)

        response = await runner.run_task(
            TaskRequest(task="generate.longTail", input={"title": sample_record.title}),
            sample_record,
        )

        assert response.success
        assert not response.fallback_used
        assert not response.cache_hit
        assert response.error is None
        assert all(isinstance(s, LongTailSuggestion) for s in response.data)
        assert response.data[0].phrase == "silent wireless mouse for office"
        assert sample_record.title in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_wrapped_list_is_accepted(self, sample_record):
        provider = FakeProvider(default=json_reply({"suggestions": LONG_TAIL_REPLY}))

        response = await runner_with(provider).run_task(
            TaskRequest(task="generate.longTail"), sample_record
        )

        assert not response.fallback_used
        assert len(response.data) == 2

    @pytest.mark.asyncio
    async def test_fenced_meta_is_normalized(self, sample_record):
        reply = json_reply(
            {"metaTitle": "  " + "M" * 80, "metaDescription": "Quiet mouse."},
            fenced=True,
        )

        response = await runner_with(FakeProvider(default=reply)).run_task(
            TaskRequest(task="generate.meta"), sample_record
        )

        assert not response.fallback_used
        assert isinstance(response.data, MetaSuggestion)
        assert response.data.meta_title == "M" * 60
        assert response.data.meta_title_length == 60
        assert response.data.meta_description_length == len("Quiet mouse.")

    @pytest.mark.asyncio
    async def test_bullets_mapped_to_originals(self, sample_record):
        reply = json_reply(["Whisper-quiet clicks", "Two years per battery"])

        response = await runner_with(FakeProvider(default=reply)).run_task(
            TaskRequest(task="rewrite.bullets"), sample_record
        )

        assert not response.fallback_used
        assert response.data[0].original == sample_record.bullets[0]
        assert response.data[0].rewritten == "Whisper-quiet clicks"
        assert response.data[1].length == len("Two years per battery")


class TestFallback:
    @pytest.mark.asyncio
    async def test_network_error_falls_back_for_meta(self, sample_record):
        provider = FakeProvider(default=ConnectionError("connection reset"))

        response = await runner_with(provider).run_task(
            TaskRequest(task="generate.meta"), sample_record
        )

        assert response.success
        assert response.fallback_used
        assert response.data.meta_title_length <= 60
        assert len(response.data.meta_title) <= 60
        assert "connection reset" in response.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            "not json at all",
            json_reply([{"phrase": "x", "score": "high"}]),
            json_reply([{"phrase": "", "score": 0.5}]),
            json_reply([]),
            json_reply({"unexpected": "shape"}),
        ],
    )
    async def test_invalid_output_falls_back(self, sample_record, reply):
        response = await runner_with(FakeProvider(default=reply)).run_task(
            TaskRequest(task="generate.longTail"), sample_record
        )

        assert response.success
        assert response.fallback_used
        assert response.error
        assert response.data[0].phrase == "buy ergonomic wireless mouse with"

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, sample_record):
        provider = SlowProvider()

        response = await runner_with(provider, timeout=0.01).run_task(
            TaskRequest(task="rewrite.bullets"), sample_record
        )

        assert response.fallback_used
        assert "timed out" in response.error
        assert response.data[0].rewritten == "Silent clicks for quiet offices"

    @pytest.mark.asyncio
    async def test_offline_skips_provider(self, sample_record):
        provider = FakeProvider(default=json_reply(LONG_TAIL_REPLY))

        response = await runner_with(provider).run_task(
            TaskRequest(task="generate.longTail", offline=True), sample_record
        )

        assert provider.prompts == []
        assert response.fallback_used
        assert response.error is None

    @pytest.mark.asyncio
    async def test_no_provider_uses_heuristic(self, sample_record):
        response = await runner_with(None).run_task(
            TaskRequest(task="generate.meta"), sample_record
        )

        assert response.fallback_used
        assert response.data.meta_title == (
            "Ergonomic Wireless Mouse with Silent Clicks | Buy Online"
        )

    @pytest.mark.asyncio
    async def test_gaps_never_call_provider(self, make_record):
        provider = FakeProvider(default=json_reply({"gaps": []}))

        response = await runner_with(provider).run_task(
            TaskRequest(task="detect.gaps"), make_record()
        )

        assert provider.prompts == []
        assert isinstance(response.data, GapResult)
        assert response.data.gap_score == 12
        assert response.data.classification == "severe"


class TestUnknownTask:
    @pytest.mark.asyncio
    async def test_unknown_task_is_unsuccessful(self, sample_record):
        response = await runner_with(FakeProvider(default="[]")).run_task(
            TaskRequest(task="generate.poem"), sample_record
        )

        assert not response.success
        assert response.data is None
        assert response.error == "Unknown task: generate.poem"


class TestCaching:
    @pytest.mark.asyncio
    async def test_second_run_is_cache_hit(self, sample_record):
        provider = FakeProvider(default=json_reply(LONG_TAIL_REPLY))
        runner = runner_with(provider)
        request = TaskRequest(task="generate.longTail", input={"title": sample_record.title})

        first = await runner.run_task(request, sample_record)
        second = await runner.run_task(request, sample_record)

        assert len(provider.prompts) == 1
        assert not first.cache_hit
        assert second.cache_hit
        assert not second.fallback_used
        assert second.data == first.data

    @pytest.mark.asyncio
    async def test_cached_heuristic_keeps_fallback_flag(self, sample_record):
        runner = runner_with(None)
        request = TaskRequest(task="rewrite.bullets", offline=True)

        await runner.run_task(request, sample_record)
        cached = await runner.run_task(request, sample_record)

        assert cached.cache_hit
        assert cached.fallback_used

    @pytest.mark.asyncio
    async def test_input_key_order_does_not_matter(self, sample_record):
        provider = FakeProvider(default=json_reply(LONG_TAIL_REPLY))
        runner = runner_with(provider)

        await runner.run_task(
            TaskRequest(task="generate.longTail", input={"a": 1, "b": "x  y"}), sample_record
        )
        second = await runner.run_task(
            TaskRequest(task="generate.longTail", input={"b": "x y", "a": 1}), sample_record
        )

        assert second.cache_hit
        assert len(provider.prompts) == 1

    @pytest.mark.asyncio
    async def test_different_page_is_cache_miss(self, sample_record):
        provider = FakeProvider(default=json_reply(LONG_TAIL_REPLY))
        runner = runner_with(provider)
        other = sample_record.model_copy(update={"url": "https://shop.example.com/other"})
        request = TaskRequest(task="generate.longTail")

        await runner.run_task(request, sample_record)
        response = await runner.run_task(request, other)

        assert not response.cache_hit
        assert len(provider.prompts) == 2

    @pytest.mark.asyncio
    async def test_products_sharing_a_title_do_not_share_entries(self, make_record):
        runner = runner_with(None)
        request = TaskRequest(task="generate.meta", offline=True)
        bottle = make_record(url=None, title="Steel Bottle", bullets=["Keeps drinks cold for 24 hours"])
        flask = make_record(url=None, title="Steel Bottle", bullets=["Fits every cup holder"])

        await runner.run_task(request, bottle)
        response = await runner.run_task(request, flask)

        assert not response.cache_hit
        assert response.data.meta_description == "Fits every cup holder Fast shipping."
