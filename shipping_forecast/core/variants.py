"""Weighted variant templates for introduction, time-period and gale segments.

WHY: A broadcast that opens with the same sentence every time stops
sounding like radio. Each segment picks one of several authored phrasings,
with weights so the common, formal wording dominates while rarer (and
stranger) variants still appear.

HOW: Each pool is an immutable tuple of frozen VariantTemplate records.
select_weighted() is a pure function of the pool and a random source, so
tests can drive it with a seeded random.Random.

RULES:
- Introduction: 12 standard variants (weight 2) and 8 surreal (weight 1)
- Introduction templates use {authority}, {time} and {date} placeholders
- Time period: tp-001..006 weight 3, tp-007..010 weight 2, the rest weight 1
- Gale-warning formats take a single {areas} placeholder
- Pools are never mutated; selection is never persisted
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class VariantTemplate:
    """One authored phrasing in a variant pool.

    RULES:
    - weight is a positive integer; selection probability is weight / total
    - surreal and authority are only meaningful in the introduction pool
    """

    id: str
    weight: int
    template: str
    surreal: bool = False
    authority: Optional[str] = None

    def render(self, **values: str) -> str:
        """Fill the template placeholders (authority is supplied automatically)."""
        if self.authority is not None:
            values.setdefault("authority", self.authority)
        return self.template.format(**values)


def select_weighted(pool: Sequence[VariantTemplate], rng: random.Random) -> VariantTemplate:
    """Pick one variant with probability proportional to its weight.

    HOW: Draws a point in [0, total) and walks the pool subtracting
    weights until the point falls inside a variant's share.
    """
    if not pool:
        raise ValueError("Cannot select from an empty variant pool")
    total = sum(v.weight for v in pool)
    point = rng.random() * total
    for variant in pool:
        point -= variant.weight
        if point < 0:
            return variant
    return pool[-1]


# ---------------------------------------------------------------------------
# Introduction
# ---------------------------------------------------------------------------

_MCA = "the Met Office on behalf of the Maritime and Coastguard Agency"
_ISSUED_BY = "And now the shipping forecast, issued by {authority} at {time} {date}"

INTRODUCTION_VARIANTS: tuple[VariantTemplate, ...] = (
    VariantTemplate("std-001", 2, _ISSUED_BY, authority=_MCA),
    VariantTemplate("std-002", 2, "The shipping forecast, issued by {authority} at {time} {date}", authority=_MCA),
    VariantTemplate("std-003", 2, _ISSUED_BY, authority="the Met Office for the Maritime and Coastguard Agency"),
    VariantTemplate(
        "std-004", 2,
        "And now the shipping forecast, issued by {authority} on behalf of the "
        "Maritime and Coastguard Agency at {time} {date}",
        authority="the Met Office",
    ),
    VariantTemplate("std-005", 2, "The shipping forecast for {date}, issued by {authority} at {time}", authority="the Met Office"),
    VariantTemplate(
        "std-006", 2, _ISSUED_BY,
        authority="the Meteorological Office on behalf of the Maritime and Coastguard Agency",
    ),
    VariantTemplate(
        "std-007", 2,
        "And now the shipping forecast. Issued by {authority} on behalf of the "
        "Maritime and Coastguard Agency at {time} {date}",
        authority="the Met Office",
    ),
    VariantTemplate("std-008", 2, "The shipping forecast issued at {time} {date} by {authority}", authority=_MCA),
    VariantTemplate(
        "std-009", 2,
        "And now the shipping forecast for mariners. Issued by {authority} on behalf "
        "of the Maritime and Coastguard Agency at {time} {date}",
        authority="the Met Office",
    ),
    VariantTemplate("std-010", 2, "And now, the shipping forecast. Issued by {authority} at {time} {date}", authority=_MCA),
    VariantTemplate("std-011", 2, _ISSUED_BY, authority="the Met Office for Her Majesty's Coastguard"),
    VariantTemplate(
        "std-012", 2,
        "The shipping forecast for {date}. Issued by {authority} on behalf of the "
        "Maritime and Coastguard Agency at {time}",
        authority="the Meteorological Office",
    ),
    VariantTemplate("sur-001", 1, _ISSUED_BY, surreal=True, authority="the Department of Quiet Waters"),
    VariantTemplate("sur-002", 1, _ISSUED_BY, surreal=True, authority="the Institute of Maritime Observation"),
    VariantTemplate(
        "sur-003", 1,
        "And now the shipping forecast, issued by {authority} at a time that may have passed {date}",
        surreal=True, authority="the Department of Quiet Waters",
    ),
    VariantTemplate(
        "sur-004", 1,
        "And now the shipping forecast, issued by {authority} at {time} on a day known to the tides",
        surreal=True, authority="the Coastal Monitoring Service",
    ),
    VariantTemplate(
        "sur-005", 1,
        "And now the shipping forecast, issued by {authority} at a time yet to be determined {date}",
        surreal=True, authority="the Maritime Weather Bureau",
    ),
    VariantTemplate(
        "sur-006", 1, _ISSUED_BY,
        surreal=True, authority="the Met Office under instruction from deeper waters",
    ),
    VariantTemplate(
        "sur-007", 1,
        "And now the shipping forecast, issued on behalf of {authority} at {time} {date}",
        surreal=True, authority="those who watch the shipping lanes",
    ),
    VariantTemplate(
        "sur-008", 1,
        "And now the shipping forecast, issued by {authority} at an hour known to the tides {date}",
        surreal=True, authority="the Sea Council",
    ),
)

# ---------------------------------------------------------------------------
# Time period
# ---------------------------------------------------------------------------

TIME_PERIOD_VARIANTS: tuple[VariantTemplate, ...] = (
    VariantTemplate("tp-001", 3, "And now the area forecasts for the next 24 hours"),
    VariantTemplate("tp-002", 3, "The area forecasts for the next 24 hours"),
    VariantTemplate("tp-003", 3, "And now the area forecasts for the next 48 hours"),
    VariantTemplate("tp-004", 3, "Area forecasts issued for the next 6 hours"),
    VariantTemplate("tp-005", 3, "And now the area forecasts for the 24-hour period beginning at 0600"),
    VariantTemplate("tp-006", 3, "The area forecasts for the period covering the next 24 hours"),
    VariantTemplate("tp-007", 2, "And now the area forecasts valid until 0600 tomorrow"),
    VariantTemplate("tp-008", 2, "Area forecasts until midnight tonight"),
    VariantTemplate("tp-009", 2, "And now the area forecasts for the period ending 1800 hours"),
    VariantTemplate("tp-010", 2, "The area forecasts valid until 0000 UTC Wednesday"),
    VariantTemplate("tp-011", 1, "And now the area forecasts valid through the overnight period"),
    VariantTemplate("tp-012", 1, "Area forecasts for the remainder of today and tonight"),
    VariantTemplate("tp-013", 1, "And now the area forecasts through the next two tidal periods"),
    VariantTemplate("tp-014", 1, "Area forecasts for the next watch period"),
    VariantTemplate("tp-015", 1, "And now the area forecasts until the next scheduled update"),
)

# ---------------------------------------------------------------------------
# Gale warnings
# ---------------------------------------------------------------------------

GALE_STANDARD = VariantTemplate("gale-standard", 1, "Gale warnings are in effect for: {areas}")
GALE_INVERSE = VariantTemplate("gale-inverse", 1, "Gale warnings are in effect in all areas except: {areas}")
GALE_ALL = VariantTemplate("gale-all", 1, "Gale warnings are in effect in all areas")
