"""Unit tests for OllamaClient against an httpx.MockTransport."""

import json

import httpx
import pytest

from doc_anonymizer.llm.exceptions import (
    ModelNotAvailableError,
    RateLimitError,
    RemoteConnectionError,
    RemoteServiceError,
    RemoteTimeoutError,
)
from doc_anonymizer.llm.ollama_client import OllamaClient, mentions_rate_limit
from doc_anonymizer.models.llm_models import LLMGenerationRequest


def make_client(handler) -> OllamaClient:
    return OllamaClient(
        base_url="http://ollama.test:11434",
        model="qwen2.5:7b",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def generation_request():
    return LLMGenerationRequest(
        system="Replace personal data with tags.",
        prompt="Ivanov I.I. called.",
        model="qwen2.5:7b",
        temperature=0.05,
        max_tokens=8192,
    )


def ok_reply(text: str, **extra) -> httpx.Response:
    body = {"model": "qwen2.5:7b", "response": text, "done": True, **extra}
    return httpx.Response(200, json=body)


# ============================================================================
# Successful generation
# ============================================================================


@pytest.mark.asyncio
async def test_generate_sends_ollama_payload(generation_request):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return ok_reply("[NAME] called.", prompt_eval_count=12, eval_count=4)

    async with make_client(handler) as client:
        response = await client.generate(generation_request)

    assert seen["path"] == "/api/generate"
    assert seen["body"] == {
        "model": "qwen2.5:7b",
        "system": "Replace personal data with tags.",
        "prompt": "Ivanov I.I. called.",
        "stream": False,
        "options": {"temperature": 0.05, "num_predict": 8192},
    }
    assert response.content == "[NAME] called."
    assert response.finish_reason == "stop"
    assert response.prompt_tokens == 12
    assert response.completion_tokens == 4


@pytest.mark.asyncio
async def test_generate_sends_context_window():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["options"] = json.loads(request.content)["options"]
        return ok_reply("x" * 7000)

    request = LLMGenerationRequest(
        system="Replace personal data with tags.",
        prompt="x" * 7000,
        model="qwen2.5:7b",
        num_ctx=16384,
    )
    async with make_client(handler) as client:
        await client.generate(request)

    assert seen["options"] == {"temperature": 0.05, "num_predict": 8192, "num_ctx": 16384}


@pytest.mark.asyncio
async def test_missing_response_field_is_empty_content(generation_request):
    async with make_client(lambda request: httpx.Response(200, json={"done": True})) as client:
        response = await client.generate(generation_request)

    assert response.content == ""


# ============================================================================
# Failure classification
# ============================================================================


@pytest.mark.asyncio
async def test_http_429_is_rate_limit(generation_request):
    def handler(request):
        return httpx.Response(429, headers={"Retry-After": "7"}, text="slow down")

    async with make_client(handler) as client:
        with pytest.raises(RateLimitError) as exc_info:
            await client.generate(generation_request)

    assert exc_info.value.rate_limited is True
    assert exc_info.value.details["retry_after"] == "7"


@pytest.mark.asyncio
async def test_rate_limit_marker_in_error_body(generation_request):
    def handler(request):
        return httpx.Response(503, json={"error": "Too Many Requests, retry later"})

    async with make_client(handler) as client:
        with pytest.raises(RateLimitError):
            await client.generate(generation_request)


@pytest.mark.asyncio
async def test_rate_limit_marker_in_json_error(generation_request):
    def handler(request):
        return httpx.Response(200, json={"error": "rate limit exceeded"})

    async with make_client(handler) as client:
        with pytest.raises(RateLimitError):
            await client.generate(generation_request)


@pytest.mark.asyncio
async def test_http_404_is_model_not_available(generation_request):
    def handler(request):
        return httpx.Response(404, json={"error": "model 'qwen2.5:7b' not found"})

    async with make_client(handler) as client:
        with pytest.raises(ModelNotAvailableError) as exc_info:
            await client.generate(generation_request)

    assert exc_info.value.rate_limited is False


@pytest.mark.asyncio
async def test_http_500_is_fatal_service_error(generation_request):
    async with make_client(lambda request: httpx.Response(500, text="internal")) as client:
        with pytest.raises(RemoteServiceError) as exc_info:
            await client.generate(generation_request)

    assert not isinstance(exc_info.value, RateLimitError)
    assert exc_info.value.details["status"] == 500


@pytest.mark.asyncio
async def test_json_error_without_marker_is_fatal(generation_request):
    def handler(request):
        return httpx.Response(200, json={"error": "context length exceeded"})

    async with make_client(handler) as client:
        with pytest.raises(RemoteServiceError, match="context length exceeded"):
            await client.generate(generation_request)


@pytest.mark.asyncio
async def test_invalid_json_is_service_error(generation_request):
    async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(RemoteServiceError, match="Invalid JSON"):
            await client.generate(generation_request)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["unexpected"], "text", 42, None])
async def test_non_object_json_is_service_error(generation_request, body):
    async with make_client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(RemoteServiceError, match="Unexpected reply") as exc_info:
            await client.generate(generation_request)

    assert type(exc_info.value) is RemoteServiceError


@pytest.mark.asyncio
async def test_timeout_maps_to_remote_timeout(generation_request):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RemoteTimeoutError):
            await client.generate(generation_request)


@pytest.mark.asyncio
async def test_connect_error_maps_to_remote_connection(generation_request):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RemoteConnectionError) as exc_info:
            await client.generate(generation_request)

    assert not isinstance(exc_info.value, RemoteTimeoutError)


# ============================================================================
# Ping
# ============================================================================


@pytest.mark.asyncio
async def test_ping_true_on_non_empty_reply():
    prompts = []

    def handler(request):
        prompts.append(json.loads(request.content)["prompt"])
        return ok_reply("pong")

    async with make_client(handler) as client:
        assert await client.ping() is True

    assert prompts == ["ping"]


@pytest.mark.asyncio
async def test_ping_false_on_empty_reply():
    async with make_client(lambda request: ok_reply("   ")) as client:
        assert await client.ping() is False


@pytest.mark.asyncio
async def test_ping_never_raises_and_never_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="Too Many Requests")

    async with make_client(handler) as client:
        assert await client.ping() is False

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_ping_false_on_non_object_reply():
    async with make_client(lambda request: httpx.Response(200, json=["unexpected"])) as client:
        assert await client.ping() is False


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Too Many Requests", True),
        ("RESOURCE_EXHAUSTED: quota", True),
        ("rate-limit reached", True),
        ("model not found", False),
        ("", False),
        (None, False),
    ],
)
def test_mentions_rate_limit(text, expected):
    assert mentions_rate_limit(text) is expected
