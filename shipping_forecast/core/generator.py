"""Content generators: one forecast entity per call.

WHY: Each part of an area forecast (wind, precipitation, visibility,
icing) and the general synopsis follows its own small grammar. Keeping
them as separate pure functions makes each grammar testable on its own,
and lets the broadcast generator stay a thin orchestration layer.

HOW: Every function takes a random.Random and returns an IR dataclass.
Nothing here keeps state; AreaSequence is the one stateful helper and
owns the shuffled deck of standard areas.

RULES:
- Single wind force is 3–12; compound ranges start at 3–10 and span
  1–3 forces, capped at 12
- A wind change (25%) always carries a subsequent wind (force 3–10);
  an occasional wind (30%) only appears alongside a change
- The subsequent wind takes a timing phrase half of the time; "at first"
  is reserved for the initial wind of a change (20%)
- Visibility is always compound: "or" 25%, "occasionally" 37.5%,
  "becoming" 37.5%, the latter two with "later" half of the time
- Icing appears 10% of the time
- Synopsis pressure 900–1099; change magnitude from PRESSURE_RATE_BANDS,
  negative when deepening
- Standard areas are dealt from a shuffled deck that reshuffles when
  exhausted; any slot becomes a phantom area at PHANTOM_PROBABILITY
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from shipping_forecast.config import (
    COMPOUND_WIND_PROBABILITY,
    ICING_PROBABILITY,
    INITIAL_WIND_TIMING_PROBABILITY,
    OCCASIONAL_WIND_PROBABILITY,
    PHANTOM_PROBABILITY,
    PRESSURE_RANGE_MB,
    PRESSURE_RATE_BANDS,
    SYNOPSIS_CHANGE_PROBABILITY,
    WIND_CHANGE_PROBABILITY,
    WIND_SHIFT_TIMING_PROBABILITY,
)
from shipping_forecast.core.ir import (
    AreaForecast,
    AreaKind,
    GeneralSynopsis,
    Icing,
    Precipitation,
    PressureChange,
    PressurePosition,
    SeaArea,
    Visibility,
    Wind,
    WindForce,
    WindShift,
)
from shipping_forecast.core.vocabulary import (
    COMPASS_DIRECTIONS,
    ICING_SEVERITIES,
    INITIAL_WIND_TIMING,
    PHANTOM_AREAS,
    PRECIPITATION_MODIFIERS,
    PRECIPITATION_TYPES,
    PRESSURE_CHANGES,
    PRESSURE_RATES,
    PRESSURE_SYSTEMS,
    STANDARD_AREAS,
    TIMING_PHRASES,
    VISIBILITY,
    WIND_CHANGES,
    WIND_DIRECTIONS,
)

# ---------------------------------------------------------------------------
# Wind
# ---------------------------------------------------------------------------


def generate_wind_force(rng: random.Random) -> WindForce:
    """Roll a single force or a compound range."""
    if rng.random() < COMPOUND_WIND_PROBABILITY:
        base = rng.randint(3, 10)
        return WindForce(base, min(base + rng.randint(1, 3), 12))
    return WindForce(rng.randint(3, 12))


_SHIFT_TIMINGS = tuple(phrase for phrase in TIMING_PHRASES if phrase != INITIAL_WIND_TIMING)


def _wind_shift(rng: random.Random, timed: bool = True) -> WindShift:
    timing = None
    if timed and rng.random() < WIND_SHIFT_TIMING_PROBABILITY:
        timing = rng.choice(_SHIFT_TIMINGS)
    return WindShift(
        direction=rng.choice(WIND_DIRECTIONS).lower(),
        force=rng.randint(3, 10),
        timing=timing,
    )


def generate_wind(rng: random.Random) -> Wind:
    """Roll an initial wind with an optional change clause."""
    direction = rng.choice(WIND_DIRECTIONS)
    force = generate_wind_force(rng)

    if rng.random() >= WIND_CHANGE_PROBABILITY:
        return Wind(direction, force)

    change = rng.choice(WIND_CHANGES)
    subsequent = _wind_shift(rng)
    occasional = _wind_shift(rng, timed=False) if rng.random() < OCCASIONAL_WIND_PROBABILITY else None
    timing = INITIAL_WIND_TIMING if rng.random() < INITIAL_WIND_TIMING_PROBABILITY else None
    return Wind(direction, force, change=change, subsequent=subsequent, occasional=occasional, timing=timing)


# ---------------------------------------------------------------------------
# Precipitation, visibility, icing
# ---------------------------------------------------------------------------


def generate_precipitation(rng: random.Random) -> Precipitation:
    return Precipitation(rng.choice(PRECIPITATION_MODIFIERS), rng.choice(PRECIPITATION_TYPES))


def generate_visibility(rng: random.Random) -> Visibility:
    """Roll an initial visibility and a compound pattern to a different value."""
    initial = rng.choice(VISIBILITY)
    subsequent = rng.choice([v for v in VISIBILITY if v != initial]).lower()

    roll = rng.random()
    if roll < 0.25:
        return Visibility(initial, "or", subsequent)
    pattern = "occasionally" if roll < 0.625 else "becoming"
    return Visibility(initial, pattern, subsequent, later=rng.random() < 0.5)


def generate_icing(rng: random.Random) -> Optional[Icing]:
    if rng.random() >= ICING_PROBABILITY:
        return None
    return Icing(rng.choice(ICING_SEVERITIES))


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


class AreaSequence:
    """Deals sea areas for successive area forecasts.

    WHY: Every standard area should be heard before any repeats, while
    the order still changes from one cycle to the next.

    HOW: Shuffles a copy of STANDARD_AREAS and deals from it, reshuffling
    when the deck runs out. Phantom draws do not consume a card.
    """

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._deck: List[str] = []
        self._position = 0
        self._reshuffle()

    def _reshuffle(self) -> None:
        self._deck = list(STANDARD_AREAS)
        self._rng.shuffle(self._deck)
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    def next_area(self) -> SeaArea:
        if self._rng.random() < PHANTOM_PROBABILITY:
            return SeaArea(self._rng.choice(PHANTOM_AREAS), AreaKind.PHANTOM)

        name = self._deck[self._position]
        self._position += 1
        if self._position >= len(self._deck):
            self._reshuffle()
        return SeaArea(name)


def generate_area_forecast(area: SeaArea, rng: random.Random) -> AreaForecast:
    """Roll every forecast component for the given area."""
    wind = generate_wind(rng)
    precipitation = generate_precipitation(rng)
    icing = generate_icing(rng)
    visibility = generate_visibility(rng)
    return AreaForecast(
        area=area,
        wind=wind,
        precipitation=precipitation,
        visibility=visibility,
        icing=icing,
    )


# ---------------------------------------------------------------------------
# General synopsis
# ---------------------------------------------------------------------------


def pressure_change_magnitude(rate: str, rng: random.Random) -> int:
    """Unsigned pressure change in millibars for a rate descriptor."""
    low, high = PRESSURE_RATE_BANDS[rate]
    return rng.randint(low, high)


def format_future_time(now: datetime, hours_ahead: int) -> str:
    """Clock time hours_ahead from now, suffixed " tomorrow" past midnight."""
    future = now + timedelta(hours=hours_ahead)
    text = future.strftime("%H:%M")
    if future.date() != now.date():
        text += " tomorrow"
    return text


def generate_synopsis(rng: random.Random, now: Optional[datetime] = None) -> GeneralSynopsis:
    """Roll a pressure system, its optional change and its expected position."""
    now = now or datetime.now(timezone.utc)

    current = PressurePosition(
        direction=rng.choice(COMPASS_DIRECTIONS),
        area=rng.choice(STANDARD_AREAS),
        pressure=rng.randint(*PRESSURE_RANGE_MB),
    )
    system = rng.choice(PRESSURE_SYSTEMS)

    change = None
    if rng.random() < SYNOPSIS_CHANGE_PROBABILITY:
        kind = rng.choice(PRESSURE_CHANGES)
        rate = rng.choice(PRESSURE_RATES)
        magnitude = pressure_change_magnitude(rate, rng)
        if kind == "deepening":
            magnitude = -magnitude
        change = PressureChange(kind, rate, magnitude)

    expected = PressurePosition(
        direction=rng.choice(COMPASS_DIRECTIONS),
        area=rng.choice(STANDARD_AREAS),
        pressure=current.pressure + (change.magnitude if change else 0),
    )
    return GeneralSynopsis(
        system=system,
        current=current,
        expected=expected,
        expected_time=format_future_time(now, rng.randint(3, 24)),
        change=change,
    )
