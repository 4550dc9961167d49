"""Async HTTP adapter for the remote speech-synthesis service.

WHY: Every spoken segment goes through one network call, and networks
fail. This module hides the HTTP details, retries what is worth retrying,
refuses to retry what never will succeed, and keeps usage counters so the
cost of an endless broadcast stays visible.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. SynthesisClient is an
async context manager: enter it to get an authenticated connection pool,
exit to close it. synthesize() validates the payload, then runs up to
max_attempts attempts, each bounded by asyncio.wait_for, sleeping
base_delay × 2^(attempt-1) between retryable failures.

RULES:
- Always use the async context manager (async with SynthesisClient() as c:)
- Retryable: 429 rate limit, 5xx server errors, timeouts, network errors
- Not retryable: 400/422 malformed input, 401/403 authentication, other 4xx
- Markup over MAX_MARKUP_CHARS raises MarkupTooLargeError before any call
- Each attempt has a hard timeout; exceeding it is a retryable failure
- stats.request_count counts attempts; success/failure count synthesize() calls
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import httpx
import jsonschema

from shipping_forecast.api.models import (
    SynthesisRequest,
    SynthesizedAudio,
    UsageStats,
    VoiceSelection,
)
from shipping_forecast.config import (
    MAX_MARKUP_CHARS,
    TTS_BASE_URL,
    TTS_MAX_ATTEMPTS,
    TTS_RETRY_BASE_DELAY_S,
    TTS_TIMEOUT_S,
    load_api_key,
)

logger = logging.getLogger(__name__)

_SYNTHESIZE_PATH = "/text:synthesize"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SynthesisAPIError(Exception):
    """Raised when a synthesis attempt fails.

    WHY: Callers need one typed exception to catch, and the retry loop
    needs to know whether trying again can help.

    HOW: Wraps the HTTP status code (0 when no response arrived) and a
    message. Subclasses set ``retryable``.

    RULES:
    - Always include status_code and message
    """

    retryable = False

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Synthesis API error {status_code}: {message}")


class RateLimitError(SynthesisAPIError):
    retryable = True


class ServerError(SynthesisAPIError):
    """5xx response, unreadable response body, or a network failure."""

    retryable = True


class SynthesisTimeoutError(SynthesisAPIError):
    """An attempt exceeded its hard timeout."""

    retryable = True


class MalformedInputError(SynthesisAPIError):
    """The service (or local schema validation) rejected the request."""


class AuthenticationError(SynthesisAPIError):
    """Missing, invalid or unauthorised API key."""


class MarkupTooLargeError(ValueError):
    """Raised when markup exceeds the service's per-request ceiling.

    RULES:
    - Message includes the actual size and the limit
    - Raised before any API call is made
    """


def classify_error(status_code: int, message: str) -> SynthesisAPIError:
    """Map an HTTP error status to the matching exception type."""
    if status_code == 429:
        return RateLimitError(status_code, message)
    if status_code in (401, 403):
        return AuthenticationError(status_code, message)
    if status_code in (400, 413, 422):
        return MalformedInputError(status_code, message)
    if status_code >= 500:
        return ServerError(status_code, message)
    return SynthesisAPIError(status_code, message)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class SynthesisClient:
    """Async client for the text:synthesize endpoint.

    WHY: Provides a single awaitable synthesize(markup) call that the
    orchestrator can treat as "markup in, audio out" while auth, retries,
    timeouts and accounting stay in one place.

    HOW: Wraps httpx.AsyncClient with the API key header. Use as an async
    context manager so the connection pool is closed.

    RULES:
    - api_key defaults to load_api_key() from .env
    - transport is for tests (httpx.MockTransport)
    - sleep is injectable so tests do not wait out the backoff
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        voice: VoiceSelection | None = None,
        timeout_s: float = TTS_TIMEOUT_S,
        max_attempts: int = TTS_MAX_ATTEMPTS,
        retry_base_delay_s: float = TTS_RETRY_BASE_DELAY_S,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or TTS_BASE_URL).rstrip("/")
        self._voice = voice or VoiceSelection()
        self._timeout_s = timeout_s
        self._max_attempts = max(1, max_attempts)
        self._retry_base_delay_s = retry_base_delay_s
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self.stats = UsageStats()

    async def __aenter__(self) -> SynthesisClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"X-Goog-Api-Key": self._api_key},
            timeout=httpx.Timeout(self._timeout_s),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "SynthesisClient must be used as an async context manager: "
                "async with SynthesisClient() as client: ..."
            )
        return self._client

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self._retry_base_delay_s * (2 ** (attempt - 1))

    async def synthesize(self, markup: str) -> SynthesizedAudio:
        """Synthesize one SSML document.

        Args:
            markup: A complete <speak> document.

        Returns:
            The decoded audio with latency and character count attached.

        Raises:
            MarkupTooLargeError: markup is over the service ceiling.
            SynthesisAPIError: the final attempt failed, or the failure
                was not retryable.
        """
        if len(markup) > MAX_MARKUP_CHARS:
            raise MarkupTooLargeError(
                f"Markup size ({len(markup):,} characters) exceeds the service "
                f"limit of {MAX_MARKUP_CHARS:,} characters."
            )

        try:
            payload = SynthesisRequest(markup, self._voice).to_payload()
        except jsonschema.ValidationError as exc:
            self.stats.record_failure()
            raise MalformedInputError(0, "Request failed schema validation: {}".format(exc.message)) from exc

        for attempt in range(1, self._max_attempts + 1):
            try:
                result = await self._attempt(payload, len(markup))
            except SynthesisAPIError as exc:
                if not exc.retryable or attempt >= self._max_attempts:
                    self.stats.record_failure()
                    logger.error(
                        "Synthesis failed after %d attempt(s): %s", attempt, exc
                    )
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Synthesis attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt, self._max_attempts, exc, delay,
                )
                await self._sleep(delay)
            else:
                self.stats.record_success(len(markup), result.latency_ms)
                return result

        raise AssertionError("unreachable: retry loop exited without result")

    async def _attempt(self, payload: dict, characters: int) -> SynthesizedAudio:
        client = self._ensure_client()
        self.stats.request_count += 1
        self.stats.last_request_at = time.time()
        started = time.monotonic()

        try:
            resp = await asyncio.wait_for(
                client.post(_SYNTHESIZE_PATH, json=payload),
                timeout=self._timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise SynthesisTimeoutError(
                0, f"No response within {self._timeout_s:.1f}s"
            ) from exc
        except httpx.TransportError as exc:
            raise ServerError(0, f"Network error: {exc}") from exc

        if resp.status_code != 200:
            raise classify_error(resp.status_code, resp.text)

        latency_ms = (time.monotonic() - started) * 1000
        try:
            return SynthesizedAudio.from_dict(resp.json(), characters, latency_ms)
        except ValueError as exc:
            raise ServerError(resp.status_code, str(exc)) from exc
