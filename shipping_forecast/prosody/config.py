"""Prosody settings consumed by the template builder.

WHY: Timing, emphasis and pitch are stylistic decisions that a listener
notices immediately when they drift. Bundling them in one immutable
object lets the builder stay a pure function of (config, segment), and
lets tests build variants without touching module globals.

HOW: ProsodyConfig is a frozen dataclass whose defaults come from the
project-wide constants in shipping_forecast.config.

RULES:
- Durations are integer milliseconds
- Emphasis levels follow SSML: "none", "reduced", "moderate", "strong";
  "none" means no <emphasis> element is emitted
- standard_rate 100 means no rate wrapper for ordinary content
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from shipping_forecast.config import (
    AREA_BREAKS_MS,
    MAX_MARKUP_CHARS,
    PHANTOM_PITCH_CONTOUR,
    PHANTOM_RATE_PERCENT,
    SEGMENT_PAUSES_MS,
)
from shipping_forecast.core.vocabulary import PRONUNCIATIONS


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ProsodyConfig:
    standard_rate: int = 100
    phantom_rate: int = PHANTOM_RATE_PERCENT
    phantom_pitch: Tuple[str, str, str] = PHANTOM_PITCH_CONTOUR
    segment_pauses_ms: Mapping[str, int] = field(default_factory=lambda: _frozen(SEGMENT_PAUSES_MS))
    area_breaks_ms: Mapping[str, int] = field(default_factory=lambda: _frozen(AREA_BREAKS_MS))
    emphasis: Mapping[str, str] = field(
        default_factory=lambda: _frozen(
            {"area_name": "none", "visibility": "none", "icing": "strong", "default": "none"}
        )
    )
    pronunciations: Mapping[str, str] = field(default_factory=lambda: _frozen(PRONUNCIATIONS))
    max_chars: int = MAX_MARKUP_CHARS

    def pause_for(self, label: str) -> int:
        return self.segment_pauses_ms.get(label, self.segment_pauses_ms["area_forecast"])

    def emphasis_for(self, field_name: str) -> str:
        return self.emphasis.get(field_name, self.emphasis.get("default", "none"))


DEFAULT_PROSODY = ProsodyConfig()
