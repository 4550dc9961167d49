"""Speech-synthesis request, response and usage dataclasses.

WHY: The remote service speaks JSON; the rest of the code should not.
Typed dataclasses make the request shape explicit, carry decoded audio
around as bytes rather than base64 text, and give usage accounting a
single home.

HOW: SynthesisRequest renders the service payload and validates it
against a bundled JSON schema before it leaves the process.
SynthesizedAudio.from_dict() decodes a response. UsageStats accumulates
counters across calls.

RULES:
- Payload keys match the service exactly: input.ssml, voice.languageCode,
  voice.name, audioConfig.audioEncoding, audioConfig.sampleRateHertz
- audioContent is base64 in the response and raw bytes in SynthesizedAudio
- Estimated cost is characters / 1M × TTS_COST_PER_MILLION_CHARS
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from shipping_forecast.config import (
    TTS_AUDIO_ENCODING,
    TTS_COST_PER_MILLION_CHARS,
    TTS_LANGUAGE_CODE,
    TTS_SAMPLE_RATE_HZ,
    TTS_VOICE_NAME,
)

_SCHEMA_PATH = Path(__file__).resolve().parent / "synthesis_request.schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    """Load the request schema once and keep it for later calls."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


@dataclass(frozen=True)
class VoiceSelection:
    language_code: str = TTS_LANGUAGE_CODE
    name: str = TTS_VOICE_NAME
    audio_encoding: str = TTS_AUDIO_ENCODING
    sample_rate_hz: int = TTS_SAMPLE_RATE_HZ


@dataclass(frozen=True)
class SynthesisRequest:
    """One markup document addressed to one voice.

    RULES:
    - markup must be a complete <speak> document
    - to_payload() raises jsonschema.ValidationError on a bad shape
    """

    markup: str
    voice: VoiceSelection = field(default_factory=VoiceSelection)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "input": {"ssml": self.markup},
            "voice": {
                "languageCode": self.voice.language_code,
                "name": self.voice.name,
            },
            "audioConfig": {
                "audioEncoding": self.voice.audio_encoding,
                "sampleRateHertz": self.voice.sample_rate_hz,
            },
        }
        jsonschema.validate(instance=payload, schema=_get_schema())
        return payload


@dataclass
class SynthesizedAudio:
    """Decoded audio returned by the service (or the fallback library)."""

    audio: bytes
    encoding: str = TTS_AUDIO_ENCODING
    character_count: int = 0
    latency_ms: float = 0.0
    source: str = "remote"

    @classmethod
    def from_dict(cls, data: dict, character_count: int = 0, latency_ms: float = 0.0) -> SynthesizedAudio:
        """Parse a text:synthesize response body.

        RULES:
        - The body must be a JSON object
        - audioContent is required and must be valid base64
        - Raises ValueError otherwise
        """
        if not isinstance(data, dict):
            raise ValueError("Synthesis response is not a JSON object")
        content = data.get("audioContent")
        if not content:
            raise ValueError("Synthesis response has no audioContent")
        try:
            audio = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Synthesis response audioContent is not valid base64") from exc
        return cls(audio=audio, character_count=character_count, latency_ms=latency_ms)


@dataclass
class UsageStats:
    """Cumulative usage of the remote service for one adapter instance.

    RULES:
    - request_count counts HTTP attempts, retries included
    - success_count / failure_count count synthesize() calls
    - character_count counts markup characters sent on successful calls
    """

    request_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    character_count: int = 0
    last_request_at: Optional[float] = None
    total_latency_ms: float = 0.0

    @property
    def estimated_cost(self) -> float:
        return self.character_count / 1_000_000 * TTS_COST_PER_MILLION_CHARS

    @property
    def average_latency_ms(self) -> float:
        if not self.success_count:
            return 0.0
        return self.total_latency_ms / self.success_count

    def record_success(self, characters: int, latency_ms: float) -> None:
        self.success_count += 1
        self.character_count += characters
        self.total_latency_ms += latency_ms

    def record_failure(self) -> None:
        self.failure_count += 1

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["estimated_cost"] = round(self.estimated_cost, 6)
        data["average_latency_ms"] = round(self.average_latency_ms, 2)
        return data
