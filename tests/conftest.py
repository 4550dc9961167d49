"""Shared test fixtures for the shipping_forecast test suite.

WHY: Most test modules need the same building blocks: a seeded random
source, hand-built forecast segments with known values, and a synthesis
adapter that never touches the network. Centralizing them here keeps the
tests short and makes every expected value visible.

HOW: Plain builder functions (make_area_forecast, make_wind) for
tests that need specific values, fixtures for the common cases, and
FakeAdapter, an in-memory stand-in for SynthesisClient that records
every markup document it receives and can be told to fail.

RULES:
- Random sources are always seeded
- FakeAdapter audio is derived from the markup so equal markup means
  equal audio
- Nothing here performs network or audio I/O
"""

from __future__ import annotations

import asyncio
import random
from typing import List, Optional

import pytest

from shipping_forecast.api.models import SynthesizedAudio, UsageStats
from shipping_forecast.core.ir import (
    AreaForecast,
    AreaKind,
    Icing,
    Precipitation,
    SeaArea,
    Visibility,
    Wind,
    WindForce,
)


# ---------------------------------------------------------------------------
# Forecast builders
# ---------------------------------------------------------------------------


def make_wind(
    direction: str = "South-westerly",
    low: int = 5,
    high: Optional[int] = None,
) -> Wind:
    return Wind(direction, WindForce(low, high))


def make_area_forecast(
    name: str = "Dogger",
    force: int = 5,
    high: Optional[int] = None,
    phantom: bool = False,
    icing: Optional[str] = None,
) -> AreaForecast:
    kind = AreaKind.PHANTOM if phantom else AreaKind.STANDARD
    return AreaForecast(
        area=SeaArea(name, kind),
        wind=make_wind(low=force, high=high),
        precipitation=Precipitation("Occasionally", "rain"),
        visibility=Visibility("Good", "occasionally", "poor"),
        icing=Icing(icing) if icing else None,
    )


# ---------------------------------------------------------------------------
# Fake synthesis adapter
# ---------------------------------------------------------------------------


class FakeAdapter:
    """In-memory adapter with the SynthesisClient.synthesize() signature.

    RULES:
    - fail_times: the next N calls raise RuntimeError
    - always_fail: every call raises
    - delay_s: each call sleeps first (for coalescing/look-ahead tests)
    """

    def __init__(self, delay_s: float = 0.0, fail_times: int = 0, always_fail: bool = False) -> None:
        self.delay_s = delay_s
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.calls: List[str] = []
        self.stats = UsageStats()

    async def synthesize(self, markup: str) -> SynthesizedAudio:
        self.calls.append(markup)
        self.stats.request_count += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.always_fail or self.fail_times > 0:
            self.fail_times = max(0, self.fail_times - 1)
            self.stats.record_failure()
            raise RuntimeError("synthesis unavailable")
        self.stats.record_success(len(markup), 1.0)
        return SynthesizedAudio(audio=markup.encode("utf-8"), character_count=len(markup))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def rng():
    """A seeded random source for reproducible generation."""
    return random.Random(1234)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def area_forecast():
    """A plain standard-area forecast with known values."""
    return make_area_forecast()


@pytest.fixture
def phantom_forecast():
    """The same forecast read for a phantom area."""
    return make_area_forecast(name="Obsidian Deep", phantom=True)


@pytest.fixture
def library_dir(tmp_path):
    """A minimal clip library: one area, its wind and the synopsis phrase.

    Every clip's bytes name the clip, so assembled audio shows which clips
    were used and in what order.
    """
    clips = {
        "areas/dogger.mp3": b"[dogger]",
        "areas/obsidian-deep-phantom.mp3": b"[obsidian-phantom]",
        "wind/directions/south-westerly.mp3": b"[sw]",
        "wind/forces/force-5.mp3": b"[5]",
        "precipitation/occasionally-rain.mp3": b"[occ-rain]",
        "visibility/good.mp3": b"[good]",
        "segments/synopsis.mp3": b"[synopsis]",
        "unsettling/message-3.mp3": b"[warning-3]",
    }
    for rel, data in clips.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return tmp_path
