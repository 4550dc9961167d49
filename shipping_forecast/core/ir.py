"""Broadcast intermediate representation (IR) dataclasses.

WHY: The generator, the prosody builder, the fallback synthesizer and the
HTTP preview all need the same view of a broadcast: which segments exist,
in what order, with which concrete values. A typed IR makes that contract
explicit so none of them has to re-parse rendered text.

HOW: Frozen dataclasses, one per forecast entity and one per segment kind.
Segments share the BroadcastSegment base, which exposes the segment kind,
the chosen variant id, the rendered text and the post-segment pause. Text
for area forecasts and the synopsis is derived from their fields, so two
structurally identical values always render the same text.

RULES:
- All IR objects are immutable (frozen) and compare by value
- Wind force 8–12 renders as Beaufort text, 0–7 as digits
- A compound force spanning the threshold renders mixed ("7 to gale 8")
- Effective force of a compound range is its upper bound
- Broadcast.segments() always yields Introduction → GaleWarnings? →
  GeneralSynopsis → TimePeriod → AreaForecast*
- A continuation broadcast has no Introduction
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, List, Optional, Tuple

from shipping_forecast.config import GALE_FORCE_THRESHOLD, SEGMENT_PAUSES_MS
from shipping_forecast.core.vocabulary import BEAUFORT_NAMES, area_id

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AreaKind(str, enum.Enum):
    """Whether a sea area is a real forecast area or a phantom one."""

    STANDARD = "standard"
    PHANTOM = "phantom"


class SegmentKind(str, enum.Enum):
    """Discriminator for the broadcast segment union.

    RULES:
    - Values double as keys into config.SEGMENT_PAUSES_MS
    """

    INTRODUCTION = "introduction"
    GALE_WARNINGS = "gale_warnings"
    GENERAL_SYNOPSIS = "general_synopsis"
    TIME_PERIOD = "time_period"
    AREA_FORECAST = "area_forecast"


class GaleFormat(str, enum.Enum):
    """How the gale-warning segment lists its areas."""

    STANDARD = "standard"
    INVERSE = "inverse"


# ---------------------------------------------------------------------------
# Forecast entities
# ---------------------------------------------------------------------------


def force_text(force: int) -> str:
    """Render a single Beaufort force (digits below gale, names from 8)."""
    return BEAUFORT_NAMES.get(force, str(force))


@dataclass(frozen=True)
class SeaArea:
    """A named forecast area."""

    name: str
    kind: AreaKind = AreaKind.STANDARD

    @property
    def id(self) -> str:
        return area_id(self.name)

    @property
    def is_phantom(self) -> bool:
        return self.kind is AreaKind.PHANTOM


@dataclass(frozen=True)
class WindForce:
    """A single force, or a compound range "low to high".

    RULES:
    - high is None for a single force
    - effective is the upper bound, which decides gale status
    """

    low: int
    high: Optional[int] = None

    @property
    def is_compound(self) -> bool:
        return self.high is not None

    @property
    def effective(self) -> int:
        return self.high if self.high is not None else self.low

    @property
    def text(self) -> str:
        if self.high is None:
            return force_text(self.low)
        return "{} to {}".format(force_text(self.low), force_text(self.high))


@dataclass(frozen=True)
class WindShift:
    """A subsequent or occasional wind after a change ("southerly 5 by evening")."""

    direction: str
    force: int
    timing: Optional[str] = None

    @property
    def text(self) -> str:
        text = "{} {}".format(self.direction, force_text(self.force))
        return "{} {}".format(text, self.timing) if self.timing else text


@dataclass(frozen=True)
class Wind:
    """Initial wind plus an optional change clause.

    RULES:
    - change and subsequent are either both set or both None
    - occasional and timing are only set when a change is present
    - timing qualifies the initial wind ("at first")
    """

    direction: str
    force: WindForce
    change: Optional[str] = None
    subsequent: Optional[WindShift] = None
    occasional: Optional[WindShift] = None
    timing: Optional[str] = None

    @property
    def effective_force(self) -> int:
        return self.force.effective

    @property
    def is_gale(self) -> bool:
        return self.effective_force >= GALE_FORCE_THRESHOLD

    @property
    def force_text(self) -> str:
        """Initial force with its timing, if any."""
        return "{} {}".format(self.force.text, self.timing) if self.timing else self.force.text

    @property
    def change_text(self) -> str:
        """Everything after the initial force, without the leading comma."""
        if not self.change or self.subsequent is None:
            return ""
        text = "{} {}".format(self.change.lower(), self.subsequent.text)
        if self.occasional is not None:
            text += ", occasionally " + self.occasional.text
        return text

    @property
    def text(self) -> str:
        text = "{} {}".format(self.direction, self.force_text)
        if self.change_text:
            text += ", " + self.change_text
        return text


@dataclass(frozen=True)
class Precipitation:
    modifier: str
    type: str

    @property
    def text(self) -> str:
        return "{} {}".format(self.modifier, self.type)


@dataclass(frozen=True)
class Visibility:
    """Initial visibility with an optional compound pattern.

    RULES:
    - pattern is None, "or", "occasionally" or "becoming"
    - subsequent is lowercase and differs from initial
    - later only applies to the occasionally/becoming patterns
    """

    initial: str
    pattern: Optional[str] = None
    subsequent: Optional[str] = None
    later: bool = False

    @property
    def text(self) -> str:
        if self.pattern is None or self.subsequent is None:
            return self.initial
        if self.pattern == "or":
            return "{} or {}".format(self.initial, self.subsequent)
        text = "{}, {} {}".format(self.initial, self.pattern, self.subsequent)
        return text + " later" if self.later else text


@dataclass(frozen=True)
class Icing:
    severity: str

    @property
    def text(self) -> str:
        return "{} icing".format(self.severity)


@dataclass(frozen=True)
class PressurePosition:
    """Compass bearing from an area plus a pressure in millibars."""

    direction: str
    area: str
    pressure: int

    @property
    def text(self) -> str:
        return "{} of {} {}".format(self.direction, self.area, self.pressure)


@dataclass(frozen=True)
class PressureChange:
    """Deepening or clearing at a named rate.

    RULES:
    - magnitude is signed: negative when deepening, positive when clearing
    """

    kind: str
    rate: str
    magnitude: int

    @property
    def text(self) -> str:
        return "{} {}".format(self.kind, self.rate)


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastSegment:
    """Common base for every labeled unit of broadcast content.

    Subclasses set ``kind`` and provide ``variant_id`` and ``text``.
    """

    kind: ClassVar[SegmentKind]

    @property
    def pause_ms(self) -> int:
        return SEGMENT_PAUSES_MS[self.kind.value]

    @property
    def label(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class Introduction(BroadcastSegment):
    kind: ClassVar[SegmentKind] = SegmentKind.INTRODUCTION

    variant_id: str
    text: str
    authority: str
    surreal: bool = False


@dataclass(frozen=True)
class GaleWarnings(BroadcastSegment):
    """Gale-warning announcement.

    RULES:
    - affected_areas: areas with effective force ≥ 8, geographic order
    - listed_areas: what is read out (affected, or the exceptions when inverse)
    """

    kind: ClassVar[SegmentKind] = SegmentKind.GALE_WARNINGS

    variant_id: str
    text: str
    format: GaleFormat
    affected_areas: Tuple[str, ...]
    listed_areas: Tuple[str, ...]


@dataclass(frozen=True)
class GeneralSynopsis(BroadcastSegment):
    kind: ClassVar[SegmentKind] = SegmentKind.GENERAL_SYNOPSIS

    system: str
    current: PressurePosition
    expected: PressurePosition
    expected_time: str
    change: Optional[PressureChange] = None
    variant_id: str = "synopsis"

    @property
    def text(self) -> str:
        text = "The general synopsis: {} {}".format(self.system, self.current.text)
        if self.change is not None:
            text += ", {},".format(self.change.text)
        text += " expected {} by {}.".format(self.expected.text, self.expected_time)
        return text


@dataclass(frozen=True)
class TimePeriod(BroadcastSegment):
    kind: ClassVar[SegmentKind] = SegmentKind.TIME_PERIOD

    variant_id: str
    text: str
    validity_hours: int = 24


@dataclass(frozen=True)
class AreaForecast(BroadcastSegment):
    """Forecast for one sea area.

    HOW: text joins area, wind, precipitation, visibility and optional
    icing with ". " and closes with a full stop.
    """

    kind: ClassVar[SegmentKind] = SegmentKind.AREA_FORECAST

    area: SeaArea
    wind: Wind
    precipitation: Precipitation
    visibility: Visibility
    icing: Optional[Icing] = None
    variant_id: str = "area"

    @property
    def text(self) -> str:
        parts = [self.area.name, self.wind.text, self.precipitation.text, self.visibility.text]
        if self.icing is not None:
            parts.append(self.icing.text)
        return ". ".join(parts) + "."


# ---------------------------------------------------------------------------
# Broadcast
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Broadcast:
    """One complete pass of the forecast, ready to be spoken in order.

    RULES:
    - introduction is None for continuation broadcasts
    - gale_warnings is None when no area reaches gale force
    """

    id: str
    general_synopsis: GeneralSynopsis
    time_period: TimePeriod
    area_forecasts: Tuple[AreaForecast, ...]
    introduction: Optional[Introduction] = None
    gale_warnings: Optional[GaleWarnings] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def is_continuation(self) -> bool:
        return self.introduction is None

    def segments(self) -> List[BroadcastSegment]:
        """All segments in broadcast order."""
        ordered: List[BroadcastSegment] = []
        if self.introduction is not None:
            ordered.append(self.introduction)
        if self.gale_warnings is not None:
            ordered.append(self.gale_warnings)
        ordered.append(self.general_synopsis)
        ordered.append(self.time_period)
        ordered.extend(self.area_forecasts)
        return ordered

    @property
    def text(self) -> str:
        return "\n\n".join(segment.text for segment in self.segments())
