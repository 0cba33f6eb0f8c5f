"""
Unit tests for the HTTP completion provider.

Uses httpx.MockTransport so no request leaves the process.
"""

import json

import httpx
import pytest

from product_optimizer.core.exceptions import ConfigurationException, ProviderException
from product_optimizer.services import CompletionProvider, HttpCompletionProvider


def completion_body(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_provider(handler, max_retries: int = 3) -> HttpCompletionProvider:
    return HttpCompletionProvider(
        base_url="https://llm.example.com/v1/",
        api_key="test-key",
        model="test-model",
        timeout=5.0,
        max_retries=max_retries,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


class TestHttpCompletionProvider:
    @pytest.mark.asyncio
    async def test_successful_completion(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=completion_body('["ok"]'))

        provider = make_provider(handler)
        assert isinstance(provider, CompletionProvider)

        text = await provider.complete("Write something")

        assert text == '["ok"]'
        request = seen[0]
        assert str(request.url) == "https://llm.example.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer test-key"
        payload = json.loads(request.content)
        assert payload["model"] == "test-model"
        assert payload["messages"][-1] == {"role": "user", "content": "Write something"}

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                return httpx.Response(503)
            return httpx.Response(200, json=completion_body("{}"))

        text = await make_provider(handler).complete("prompt")

        assert text == "{}"
        assert calls["count"] == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(429)

        with pytest.raises(ProviderException):
            await make_provider(handler, max_retries=2).complete("prompt")
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(401, json={"error": "bad key"})

        with pytest.raises(ProviderException, match="401"):
            await make_provider(handler).complete("prompt")
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_transport_error_becomes_provider_exception(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderException, match="unreachable"):
            await make_provider(handler, max_retries=2).complete("prompt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"choices": []}, {"choices": [{"message": {"content": "  "}}]}, {"error": "x"}],
    )
    async def test_unusable_body(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(ProviderException):
            await make_provider(handler).complete("prompt")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(ProviderException, match="malformed"):
            await make_provider(handler).complete("prompt")

    def test_base_url_without_scheme_is_rejected(self):
        with pytest.raises(ConfigurationException, match="http"):
            HttpCompletionProvider(base_url="llm.internal:8000/v1", api_key="k")
