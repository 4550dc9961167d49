"""Speech-synthesis API package: async HTTP interface to the remote voice.

WHY: Rendering markup to audio is the only network dependency of the
broadcast. This package keeps every detail of that call (auth, payload
shape, retries, accounting) behind one client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. SynthesisClient
exposes synthesize(markup); request/response shapes live in models.py.

RULES:
- All HTTP calls go through SynthesisClient (no direct httpx usage elsewhere)
- Authentication is via the API key from config
"""

from shipping_forecast.api.client import (
    AuthenticationError,
    MalformedInputError,
    MarkupTooLargeError,
    RateLimitError,
    ServerError,
    SynthesisAPIError,
    SynthesisClient,
    SynthesisTimeoutError,
)
from shipping_forecast.api.models import SynthesizedAudio, UsageStats

__all__ = [
    "AuthenticationError",
    "MalformedInputError",
    "MarkupTooLargeError",
    "RateLimitError",
    "ServerError",
    "SynthesisAPIError",
    "SynthesisClient",
    "SynthesisTimeoutError",
    "SynthesizedAudio",
    "UsageStats",
]
