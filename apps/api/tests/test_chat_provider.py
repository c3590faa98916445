import json

import httpx
import pytest

from hod.providers import ChatRateLimitError, ChatServiceError, GeminiChatProvider, RetryPolicy

from conftest import envelope


def make_provider(handler, sleep):
    return GeminiChatProvider(
        base_url="https://llm.test/v1beta/",
        api_key="secret",
        model="gemini-test",
        retry_policy=RetryPolicy(max_retries=3, initial_delay_s=1.0, multiplier=2.0, sleep=sleep),
        transport=httpx.MockTransport(handler),
    )


def test_retry_policy_delays():
    policy = RetryPolicy()
    assert [policy.delay_for(i) for i in range(3)] == [1.0, 2.0, 4.0]
    assert policy.should_retry(2) is True
    assert policy.should_retry(3) is False


async def test_request_shape(fake_sleep):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=envelope({"tasks": []}))

    provider = make_provider(handler, fake_sleep)
    data = await provider.generate("Hello", {"temperature": 0.1})

    assert data == envelope({"tasks": []})
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "secret"
    assert json.loads(request.content) == {
        "contents": [{"parts": [{"text": "Hello"}]}],
        "generationConfig": {"temperature": 0.1},
    }


async def test_rate_limit_retries_with_exponential_backoff_then_gives_up(fake_sleep, sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": "quota"})

    provider = make_provider(handler, fake_sleep)
    with pytest.raises(ChatRateLimitError):
        await provider.generate("Hello")

    assert len(calls) == 4
    assert sleeps == [1.0, 2.0, 4.0]


async def test_rate_limit_recovers(fake_sleep, sleeps):
    responses = [httpx.Response(429), httpx.Response(429), httpx.Response(200, json=envelope("ok"))]

    def handler(request):
        return responses.pop(0)

    provider = make_provider(handler, fake_sleep)
    assert await provider.generate("Hello") == envelope("ok")
    assert sleeps == [1.0, 2.0]


async def test_server_error_is_not_retried(fake_sleep, sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="boom")

    provider = make_provider(handler, fake_sleep)
    with pytest.raises(ChatServiceError) as exc_info:
        await provider.generate("Hello")

    assert not isinstance(exc_info.value, ChatRateLimitError)
    assert len(calls) == 1
    assert sleeps == []


async def test_connection_error_becomes_service_error(fake_sleep):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = make_provider(handler, fake_sleep)
    with pytest.raises(ChatServiceError):
        await provider.generate("Hello")


async def test_non_json_body_becomes_service_error(fake_sleep):
    provider = make_provider(lambda request: httpx.Response(200, text="<html>"), fake_sleep)
    with pytest.raises(ChatServiceError):
        await provider.generate("Hello")
