"""Broadcast generator: assembles segments into a complete, ordered broadcast.

WHY: Playback needs a steady supply of grammar-valid broadcasts. The first
one opens with an introduction; every one after that continues the loop
without re-introducing the programme, with all other content rolled fresh.

HOW: BroadcastGenerator owns a random.Random and an AreaSequence. It
rolls the area forecasts first, derives the gale-warning segment from
them, then rolls the synopsis and picks introduction/time-period variants.

RULES:
- generate_broadcast() includes an Introduction; generate_continuation()
  never does
- Gale warnings exist iff any area forecast has effective force ≥ 8
- Inverse format when affected areas ≥ INVERSE_GALE_FORMAT_THRESHOLD
- Area lists are in geographic order (standard order, phantoms last)
- Generation uses only in-process randomness and static tables; any
  exception here is a bug, not a runtime condition
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from shipping_forecast.config import (
    AREAS_PER_BROADCAST,
    INVERSE_GALE_FORMAT_THRESHOLD,
    TIME_PERIOD_VALIDITY_HOURS,
)
from shipping_forecast.core.generator import (
    AreaSequence,
    generate_area_forecast,
    generate_synopsis,
)
from shipping_forecast.core.ir import (
    AreaForecast,
    Broadcast,
    GaleFormat,
    GaleWarnings,
    Introduction,
    TimePeriod,
)
from shipping_forecast.core.spoken import spoken_date, spoken_time
from shipping_forecast.core.variants import (
    GALE_ALL,
    GALE_INVERSE,
    GALE_STANDARD,
    INTRODUCTION_VARIANTS,
    TIME_PERIOD_VARIANTS,
    select_weighted,
)
from shipping_forecast.core.vocabulary import geographic_index

logger = logging.getLogger(__name__)


def order_geographically(names: Iterable[str]) -> List[str]:
    """Sort area names into canonical broadcast order, dropping duplicates."""
    return sorted(set(names), key=geographic_index)


def build_gale_warnings(forecasts: Iterable[AreaForecast]) -> Optional[GaleWarnings]:
    """Derive the gale-warning segment from a batch of area forecasts.

    WHY: Warnings are read before the synopsis but depend on the area
    forecasts that follow, so they are computed after the forecasts exist.

    HOW: Collects areas whose effective force reaches gale, orders them
    geographically, then picks the standard or inverse listing by count.

    RULES:
    - Returns None when no forecast reaches gale force
    - Inverse lists the areas in the batch without gales
    - With no such areas the inverse reads "in all areas", no list
    """
    forecasts = list(forecasts)
    affected = order_geographically(f.area.name for f in forecasts if f.wind.is_gale)
    if not affected:
        return None

    if len(affected) >= INVERSE_GALE_FORMAT_THRESHOLD:
        everyone = order_geographically(f.area.name for f in forecasts)
        listed = [name for name in everyone if name not in affected]
        template = GALE_INVERSE if listed else GALE_ALL
        fmt = GaleFormat.INVERSE
    else:
        listed = affected
        template, fmt = GALE_STANDARD, GaleFormat.STANDARD

    return GaleWarnings(
        variant_id=template.id,
        text=template.render(areas=", ".join(listed)),
        format=fmt,
        affected_areas=tuple(affected),
        listed_areas=tuple(listed),
    )


class BroadcastGenerator:
    """Produces opening and continuation broadcasts.

    WHY: The playback loop needs one object to ask for "the next
    broadcast" without knowing how the grammar fits together.

    HOW: Holds the random source, the area deck and a clock. Each call
    builds a brand-new Broadcast; nothing from a previous broadcast is
    reused except the position in the area deck.

    RULES:
    - rng defaults to a fresh random.Random(); pass a seeded one in tests
    - clock returns an aware UTC datetime (used for the spoken issue time)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        areas_per_broadcast: int = AREAS_PER_BROADCAST,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._areas = AreaSequence(self._rng)
        self._areas_per_broadcast = areas_per_broadcast
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.broadcasts_generated = 0

    def generate_broadcast(self) -> Broadcast:
        """Build the opening broadcast, introduction included."""
        return self._build(include_introduction=True)

    def generate_continuation(self) -> Broadcast:
        """Build the next loop iteration: everything except the introduction."""
        return self._build(include_introduction=False)

    # ------------------------------------------------------------------
    # Segment builders
    # ------------------------------------------------------------------

    def _build(self, include_introduction: bool) -> Broadcast:
        now = self._clock()
        forecasts = tuple(
            generate_area_forecast(self._areas.next_area(), self._rng)
            for _ in range(self._areas_per_broadcast)
        )
        broadcast = Broadcast(
            id="broadcast-{}".format(uuid.UUID(int=self._rng.getrandbits(128)).hex[:8]),
            introduction=self._build_introduction(now) if include_introduction else None,
            gale_warnings=build_gale_warnings(forecasts),
            general_synopsis=generate_synopsis(self._rng, now),
            time_period=self._build_time_period(),
            area_forecasts=forecasts,
            created_at=now,
        )
        self.broadcasts_generated += 1
        logger.info(
            "Generated %s %s: %d areas, gale warnings %s",
            "continuation" if broadcast.is_continuation else "broadcast",
            broadcast.id,
            len(forecasts),
            broadcast.gale_warnings.format.value if broadcast.gale_warnings else "none",
        )
        return broadcast

    def _build_introduction(self, now: datetime) -> Introduction:
        variant = select_weighted(INTRODUCTION_VARIANTS, self._rng)
        return Introduction(
            variant_id=variant.id,
            text=variant.render(time=spoken_time(now), date=spoken_date(now)),
            authority=variant.authority or "",
            surreal=variant.surreal,
        )

    def _build_time_period(self) -> TimePeriod:
        variant = select_weighted(TIME_PERIOD_VARIANTS, self._rng)
        return TimePeriod(
            variant_id=variant.id,
            text=variant.render(),
            validity_hours=TIME_PERIOD_VALIDITY_HOURS,
        )
