"""Configuration constants, timing tables, and .env loading.

WHY: The broadcast has a lot of tuning that encodes stylistic intent
rather than logic: pause lengths, pressure-change bands, retry policy,
inactivity thresholds. Keeping those values as plain module-level data
(not buried in the generators or the player) makes them easy to find and
adjust without touching behaviour.

HOW: python-dotenv loads the .env file on import. Runtime knobs read an
environment variable with a default; stylistic tables are plain dicts.
load_api_key() gives a clear error when the synthesis key is missing.

RULES:
- Pause durations are milliseconds, timeouts/intervals are seconds
- PRESSURE_RATE_BANDS maps rate descriptor → inclusive (min, max) hPa
- MAX_MARKUP_CHARS is the remote service's per-request ceiling
- API key is loaded from .env via python-dotenv, never hardcoded
- All runtime defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the process is started)
load_dotenv()

# ---------------------------------------------------------------------------
# Broadcast content
# ---------------------------------------------------------------------------

AREAS_PER_BROADCAST = int(os.getenv("AREAS_PER_BROADCAST", "31"))
PHANTOM_PROBABILITY = 0.02
ICING_PROBABILITY = 0.10
COMPOUND_WIND_PROBABILITY = 0.20
WIND_CHANGE_PROBABILITY = 0.25
OCCASIONAL_WIND_PROBABILITY = 0.30
WIND_SHIFT_TIMING_PROBABILITY = 0.5
INITIAL_WIND_TIMING_PROBABILITY = 0.2
SYNOPSIS_CHANGE_PROBABILITY = 0.5

GALE_FORCE_THRESHOLD = 8
INVERSE_GALE_FORMAT_THRESHOLD = 16
"""Affected-area count at which gale warnings list the exceptions instead."""

TIME_PERIOD_VALIDITY_HOURS = 24

PRESSURE_RANGE_MB: tuple[int, int] = (900, 1099)

PRESSURE_RATE_BANDS: dict[str, tuple[int, int]] = {
    "more slowly": (3, 5),
    "slowly": (4, 6),
    "quickly": (8, 10),
    "very rapidly": (10, 12),
}

# ---------------------------------------------------------------------------
# Prosody timing (milliseconds)
# ---------------------------------------------------------------------------

SEGMENT_PAUSES_MS: dict[str, int] = {
    "introduction": 1500,
    "gale_warnings": 1000,
    "general_synopsis": 1200,
    "time_period": 800,
    "area_forecast": 1500,
    "warning": 1500,
}

AREA_BREAKS_MS: dict[str, int] = {
    "after_area_name": 800,
    "after_wind_direction": 200,
    "after_wind_force": 600,
    "after_precipitation": 600,
    "after_visibility": 600,
    "after_icing": 500,
}

PHANTOM_RATE_PERCENT = 90
PHANTOM_PITCH_CONTOUR: tuple[str, str, str] = ("+0%", "-12%", "-6%")

MAX_MARKUP_CHARS = 5000

# ---------------------------------------------------------------------------
# Remote synthesis service
# ---------------------------------------------------------------------------

TTS_BASE_URL = os.getenv("TTS_BASE_URL", "https://texttospeech.googleapis.com/v1")
TTS_LANGUAGE_CODE = os.getenv("TTS_LANGUAGE_CODE", "en-GB")
TTS_VOICE_NAME = os.getenv("TTS_VOICE_NAME", "en-GB-Neural2-D")
TTS_AUDIO_ENCODING = os.getenv("TTS_AUDIO_ENCODING", "MP3")
TTS_SAMPLE_RATE_HZ = int(os.getenv("TTS_SAMPLE_RATE_HZ", "24000"))
TTS_TIMEOUT_S = float(os.getenv("TTS_TIMEOUT_S", "5.0"))
TTS_MAX_ATTEMPTS = int(os.getenv("TTS_MAX_ATTEMPTS", "3"))
TTS_RETRY_BASE_DELAY_S = float(os.getenv("TTS_RETRY_BASE_DELAY_S", "0.1"))
TTS_COST_PER_MILLION_CHARS = 16.0

# ---------------------------------------------------------------------------
# Audio cache, playback and fallback
# ---------------------------------------------------------------------------

TTS_COMPRESSED_BITRATE_KBPS = int(os.getenv("TTS_COMPRESSED_BITRATE_KBPS", "32"))
"""Bitrate of MP3/Opus output, used to turn byte counts into playing time."""

SPOKEN_MARKUP_CHARS_PER_S = 25.0
"""Markup characters a voice gets through per second, breaks included."""

STREAM_CHUNK_BYTES = 4096
STREAM_LISTENER_BACKLOG = 64

CACHE_CAPACITY = int(os.getenv("CACHE_CAPACITY", "50"))
FALLBACK_FAILURE_THRESHOLD = int(os.getenv("FALLBACK_FAILURE_THRESHOLD", "3"))
AUDIO_LIBRARY_DIR = os.getenv("AUDIO_LIBRARY_DIR", "audio")

# ---------------------------------------------------------------------------
# Inactivity monitor (seconds)
# ---------------------------------------------------------------------------

WARNING_THRESHOLD_S = float(os.getenv("WARNING_THRESHOLD_S", "60"))
FOCUS_POLL_INTERVAL_S = float(os.getenv("FOCUS_POLL_INTERVAL_S", "1"))
FOCUS_RESTORE_DEBOUNCE_S = float(os.getenv("FOCUS_RESTORE_DEBOUNCE_S", "1"))

# ---------------------------------------------------------------------------
# HTTP control API
# ---------------------------------------------------------------------------

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))


def load_api_key() -> str:
    """Load the speech-synthesis API key from the environment.

    WHY: Every remote synthesis call is authenticated. Loading the key
    from the environment (via .env) keeps it out of source code.

    HOW: Reads TTS_API_KEY from os.environ (populated by python-dotenv).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("TTS_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Speech synthesis API key not configured. "
            "Add TTS_API_KEY to the .env file in the project folder."
        )
    return key
