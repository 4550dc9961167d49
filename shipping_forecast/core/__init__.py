"""Broadcast content: vocabulary, generators and the intermediate representation.

WHY: Everything the listener hears starts here. The core package turns
static vocabulary and weighted variant pools into typed broadcast objects
that the prosody and audio layers consume.

HOW: vocabulary.py and variants.py hold immutable tables, generator.py
rolls individual forecast entities, broadcast.py assembles them into a
Broadcast (ir.py), and spoken.py renders times and dates for speech.

RULES:
- Pure Python, no I/O; randomness always comes from an injected
  random.Random
- The IR is the contract with the prosody builder, change with care
"""

from shipping_forecast.core.broadcast import BroadcastGenerator
from shipping_forecast.core.ir import (
    AreaForecast,
    Broadcast,
    BroadcastSegment,
    GaleWarnings,
    GeneralSynopsis,
    Introduction,
    SegmentKind,
    TimePeriod,
)

__all__ = [
    "AreaForecast",
    "Broadcast",
    "BroadcastGenerator",
    "BroadcastSegment",
    "GaleWarnings",
    "GeneralSynopsis",
    "Introduction",
    "SegmentKind",
    "TimePeriod",
]
