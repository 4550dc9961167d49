"""Static vocabulary tables for the forecast grammar.

WHY: Every generator draws its words from the same closed vocabularies:
sea areas, wind directions, precipitation, visibility, pressure. Keeping
them as immutable tuples in one module means the grammar can be read (and
extended) without reading any generation logic.

HOW: Plain module-level tuples and one dict. Order matters for
STANDARD_AREAS: it is the canonical geographic order used whenever areas
are listed (gale warnings), never alphabetical.

RULES:
- All tables are tuples (immutable); nothing mutates them at runtime
- STANDARD_AREAS order is clockwise from Viking, as read on air
- BEAUFORT_NAMES covers forces 8–12 only; lower forces render as digits
"""

from __future__ import annotations

STANDARD_AREAS: tuple[str, ...] = (
    "Viking",
    "North Utsire",
    "South Utsire",
    "Forties",
    "Cromarty",
    "Forth",
    "Tyne",
    "Dogger",
    "Fisher",
    "German Bight",
    "Humber",
    "Thames",
    "Dover",
    "Wight",
    "Portland",
    "Plymouth",
    "Biscay",
    "Trafalgar",
    "FitzRoy",
    "Sole",
    "Lundy",
    "Fastnet",
    "Irish Sea",
    "Shannon",
    "Rockall",
    "Malin",
    "Hebrides",
    "Bailey",
    "Fair Isle",
    "Faeroes",
    "South-East Iceland",
)

PHANTOM_AREAS: tuple[str, ...] = (
    "The Void",
    "Silence",
    "Elder Bank",
    "Mirror Reach",
    "The Marrow",
    "Still Water",
    "Obsidian Deep",
)

# ---------------------------------------------------------------------------
# Wind
# ---------------------------------------------------------------------------

WIND_DIRECTIONS: tuple[str, ...] = (
    "Northerly",
    "North-easterly",
    "Easterly",
    "South-easterly",
    "Southerly",
    "South-westerly",
    "Westerly",
    "North-westerly",
    "Variable",
    "Cyclonic",
)

WIND_CHANGES: tuple[str, ...] = (
    "Backing",
    "Veering",
    "Becoming variable",
    "Becoming cyclonic",
)

BEAUFORT_NAMES: dict[int, str] = {
    8: "gale 8",
    9: "severe gale 9",
    10: "storm 10",
    11: "violent storm 11",
    12: "hurricane force 12",
}

# ---------------------------------------------------------------------------
# Precipitation, visibility, icing
# ---------------------------------------------------------------------------

PRECIPITATION_MODIFIERS: tuple[str, ...] = (
    "Thundery",
    "Wintry",
    "Squally",
    "Occasionally",
    "Heavy",
    "Light",
)

PRECIPITATION_TYPES: tuple[str, ...] = ("showers", "rain", "snow")

VISIBILITY: tuple[str, ...] = (
    "Excellent",
    "Very good",
    "Good",
    "Moderate",
    "Poor",
    "Very poor",
    "Fog",
    "Dense fog",
)

ICING_SEVERITIES: tuple[str, ...] = ("Moderate", "Severe")

TIMING_PHRASES: tuple[str, ...] = (
    "later",
    "at first",
    "for a time",
    "soon",
    "by evening",
    "by midnight",
    "overnight",
)
INITIAL_WIND_TIMING = "at first"
"""The one timing phrase that qualifies the initial wind, not the change."""

# ---------------------------------------------------------------------------
# General synopsis
# ---------------------------------------------------------------------------

PRESSURE_SYSTEMS: tuple[str, ...] = ("High", "Medium", "Low")

PRESSURE_CHANGES: tuple[str, ...] = ("deepening", "clearing")

PRESSURE_RATES: tuple[str, ...] = ("more slowly", "slowly", "quickly", "very rapidly")

COMPASS_DIRECTIONS: tuple[str, ...] = (
    "north",
    "northwest",
    "northeast",
    "east",
    "southeast",
    "south",
    "southwest",
    "west",
)

# ---------------------------------------------------------------------------
# Speech helpers
# ---------------------------------------------------------------------------

PRONUNCIATIONS: dict[str, str] = {
    "Utsire": "Uutt-seerra",
    "Cromarty": "KROM-ar-tee",
    "Faeroes": "FAIR-ohs",
    "FitzRoy": "fits-ROY",
    "Hebrides": "HEB-ri-deez",
    "Malin": "MAL-in",
}
"""Respellings substituted into markup for names the voice mispronounces."""


def area_id(name: str) -> str:
    """Stable identifier for an area name ("North Utsire" → "north-utsire")."""
    return name.lower().replace(" ", "-")


def geographic_index(name: str) -> int:
    """Canonical sort key: standard areas in broadcast order, then phantoms."""
    if name in STANDARD_AREAS:
        return STANDARD_AREAS.index(name)
    if name in PHANTOM_AREAS:
        return len(STANDARD_AREAS) + PHANTOM_AREAS.index(name)
    return len(STANDARD_AREAS) + len(PHANTOM_AREAS)
