"""Unit tests for the speech-synthesis HTTP adapter.

WHY: The adapter decides which failures are worth retrying and which
are not. Retrying a 400 wastes money forever; not retrying a 503 makes
the broadcast fall back to the clip library for no reason. Usage
accounting feeds the cost estimate on the stats endpoint.

HOW: SynthesisClient runs against httpx.MockTransport handlers that
return scripted responses, and an injected sleep records backoff delays
instead of waiting. Tests are grouped by concern:
  - TestSuccess: payload shape, auth header, decoded audio, stats
  - TestRetries: retryable statuses, timeouts, network errors, backoff
  - TestNoRetry: malformed input, auth failures, other 4xx
  - TestLimits: size ceiling and schema validation before any request
  - TestModels: error classification, usage stats, response parsing

RULES:
- No real network access; every client gets a MockTransport
- asyncio.run() drives each async scenario from a sync test
"""

from __future__ import annotations

import asyncio
import base64
import json
from typing import List

import httpx
import pytest

from shipping_forecast.api.client import (
    AuthenticationError,
    MalformedInputError,
    MarkupTooLargeError,
    RateLimitError,
    ServerError,
    SynthesisAPIError,
    SynthesisClient,
    SynthesisTimeoutError,
    classify_error,
)
from shipping_forecast.api.models import SynthesizedAudio, UsageStats

MARKUP = '<speak>Dogger<break time="800ms"/></speak>'
AUDIO = b"ID3-fake-mp3"


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"audioContent": base64.b64encode(AUDIO).decode()})


def _scripted(*statuses: int):
    """Handler answering with the given statuses in order, then 200s."""
    remaining = list(statuses)
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if remaining:
            return httpx.Response(remaining.pop(0), text="scripted failure")
        return _ok(request)

    handler.seen = seen
    return handler


class _Sleeps:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _client(handler, sleeps=None, **kwargs) -> SynthesisClient:
    return SynthesisClient(
        api_key="test-key",
        base_url="https://tts.example.test/v1",
        transport=httpx.MockTransport(handler),
        sleep=sleeps or _Sleeps(),
        **kwargs,
    )


def _synthesize(client: SynthesisClient, markup: str = MARKUP):
    async def _run():
        async with client:
            return await client.synthesize(markup)

    return asyncio.run(_run())


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccess:
    def test_returns_decoded_audio(self):
        client = _client(_ok)
        result = _synthesize(client)
        assert isinstance(result, SynthesizedAudio)
        assert result.audio == AUDIO
        assert result.character_count == len(MARKUP)
        assert result.source == "remote"

    def test_request_shape(self):
        handler = _scripted()
        _synthesize(_client(handler))

        request = handler.seen[0]
        assert request.url.path == "/v1/text:synthesize"
        assert request.headers["X-Goog-Api-Key"] == "test-key"
        body = json.loads(request.content)
        assert body["input"] == {"ssml": MARKUP}
        assert body["voice"]["languageCode"] == "en-GB"
        assert body["audioConfig"]["audioEncoding"] == "MP3"

    def test_stats_after_success(self):
        client = _client(_ok)
        _synthesize(client)
        assert client.stats.request_count == 1
        assert client.stats.success_count == 1
        assert client.stats.failure_count == 0
        assert client.stats.character_count == len(MARKUP)
        assert client.stats.last_request_at is not None

    def test_requires_context_manager(self):
        client = _client(_ok)
        with pytest.raises(RuntimeError, match="async context manager"):
            asyncio.run(client.synthesize(MARKUP))

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("TTS_API_KEY", raising=False)
        with pytest.raises(ValueError, match="TTS_API_KEY"):
            SynthesisClient()


# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------


class TestRetries:
    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_retryable_status_then_success(self, status):
        handler = _scripted(status)
        sleeps = _Sleeps()
        client = _client(handler, sleeps)

        result = _synthesize(client)

        assert result.audio == AUDIO
        assert len(handler.seen) == 2
        assert sleeps.delays == [0.1]
        assert client.stats.request_count == 2
        assert client.stats.success_count == 1
        assert client.stats.failure_count == 0

    def test_exponential_backoff_until_exhausted(self):
        handler = _scripted(503, 503, 503)
        sleeps = _Sleeps()
        client = _client(handler, sleeps)

        with pytest.raises(ServerError) as exc_info:
            _synthesize(client)

        assert exc_info.value.status_code == 503
        assert len(handler.seen) == 3
        assert sleeps.delays == [0.1, 0.2]
        assert client.stats.request_count == 3
        assert client.stats.failure_count == 1

    def test_rate_limit_exhausted(self):
        client = _client(_scripted(429, 429, 429))
        with pytest.raises(RateLimitError):
            _synthesize(client)

    def test_attempt_timeout_is_retried(self):
        calls = []

        async def slow(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            await asyncio.sleep(1.0)
            return _ok(request)

        client = _client(slow, timeout_s=0.05, max_attempts=2)
        with pytest.raises(SynthesisTimeoutError):
            _synthesize(client)
        assert len(calls) == 2

    def test_network_error_is_retried(self):
        calls = []

        def flaky(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return _ok(request)

        result = _synthesize(_client(flaky))
        assert result.audio == AUDIO
        assert len(calls) == 2

    def test_unreadable_body_is_retried(self):
        calls = []

        def bad_then_good(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(200, json={"audioContent": "not base64!!"})
            return _ok(request)

        assert _synthesize(_client(bad_then_good)).audio == AUDIO

    def test_non_object_body_is_a_server_error(self):
        client = _client(lambda request: httpx.Response(200, json=["audioContent"]))

        with pytest.raises(ServerError, match="not a JSON object") as exc_info:
            _synthesize(client)

        assert exc_info.value.status_code == 200
        assert client.stats.request_count == 3
        assert client.stats.failure_count == 1

    def test_backoff_delay(self):
        client = _client(_ok, retry_base_delay_s=0.5)
        assert client.backoff_delay(1) == 0.5
        assert client.backoff_delay(3) == 2.0


# ---------------------------------------------------------------------------
# No retry
# ---------------------------------------------------------------------------


class TestNoRetry:
    @pytest.mark.parametrize(
        "status, error",
        [(400, MalformedInputError), (422, MalformedInputError), (401, AuthenticationError), (403, AuthenticationError)],
    )
    def test_fails_after_one_attempt(self, status, error):
        handler = _scripted(status, status, status)
        sleeps = _Sleeps()
        client = _client(handler, sleeps)

        with pytest.raises(error):
            _synthesize(client)

        assert len(handler.seen) == 1
        assert sleeps.delays == []
        assert client.stats.failure_count == 1

    def test_other_client_error(self):
        handler = _scripted(404)
        with pytest.raises(SynthesisAPIError) as exc_info:
            _synthesize(_client(handler))
        assert type(exc_info.value) is SynthesisAPIError
        assert not exc_info.value.retryable
        assert len(handler.seen) == 1


# ---------------------------------------------------------------------------
# Limits and validation
# ---------------------------------------------------------------------------


class TestLimits:
    def test_markup_too_large_makes_no_request(self):
        handler = _scripted()
        client = _client(handler)
        markup = "<speak>" + "a" * 5000 + "</speak>"

        with pytest.raises(MarkupTooLargeError, match="5,015 characters"):
            _synthesize(client, markup)

        assert handler.seen == []
        assert client.stats.request_count == 0

    def test_exactly_at_limit_is_sent(self):
        handler = _scripted()
        markup = "<speak>" + "a" * (5000 - len("<speak></speak>")) + "</speak>"
        assert len(markup) == 5000
        _synthesize(_client(handler), markup)
        assert len(handler.seen) == 1

    def test_schema_rejects_non_speak_markup(self):
        handler = _scripted()
        client = _client(handler)

        with pytest.raises(MalformedInputError) as exc_info:
            _synthesize(client, "plain text, no speak element")

        assert exc_info.value.status_code == 0
        assert handler.seen == []
        assert client.stats.failure_count == 1


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    @pytest.mark.parametrize(
        "status, error, retryable",
        [
            (429, RateLimitError, True),
            (500, ServerError, True),
            (502, ServerError, True),
            (400, MalformedInputError, False),
            (413, MalformedInputError, False),
            (401, AuthenticationError, False),
            (404, SynthesisAPIError, False),
        ],
    )
    def test_classify_error(self, status, error, retryable):
        exc = classify_error(status, "msg")
        assert type(exc) is error
        assert exc.retryable is retryable
        assert exc.status_code == status

    def test_estimated_cost(self):
        stats = UsageStats()
        stats.record_success(1_000_000, 120.0)
        stats.record_success(500_000, 80.0)
        assert stats.estimated_cost == pytest.approx(24.0)
        assert stats.average_latency_ms == pytest.approx(100.0)

    def test_stats_to_dict(self):
        data = UsageStats(request_count=2).to_dict()
        assert data["request_count"] == 2
        assert data["estimated_cost"] == 0.0
        assert data["average_latency_ms"] == 0.0

    def test_from_dict_rejects_missing_audio(self):
        with pytest.raises(ValueError, match="no audioContent"):
            SynthesizedAudio.from_dict({})

    def test_from_dict_rejects_bad_base64(self):
        with pytest.raises(ValueError, match="base64"):
            SynthesizedAudio.from_dict({"audioContent": "%%%"})

    @pytest.mark.parametrize("body", [[], ["audioContent"], "audio", None, 42])
    def test_from_dict_rejects_non_object(self, body):
        with pytest.raises(ValueError, match="not a JSON object"):
            SynthesizedAudio.from_dict(body)
