"""SSML template builder: broadcast segments → speech markup.

WHY: The remote voice only hears markup. Everything that makes the
broadcast sound like the real thing (the long hold after an area name,
the short catch after a wind direction, the sagging pitch of a phantom
area) has to be encoded here, exactly and repeatably.

HOW: TemplateBuilder renders one segment at a time into a <speak>
document. Ordinary segments are escaped text followed by their fixed
pause. Area forecasts are assembled component by component with a break
after each. Phantom areas get a slower rate wrapper plus three pitch
spans (area name, middle, end) nested around the same component/break
sequence, so timing is identical to a standard area. build_document()
joins several segments into one document for callers that want to send
bigger requests.

RULES:
- Pure: the same segment values always produce byte-identical markup
- All free text is escaped (& < > " ')
- <emphasis> only when the configured level is not "none"
- A <prosody rate> wrapper only when the rate is not 100%
- Output is well-formed XML rooted at <speak>
- The builder never truncates; MarkupTemplate.over_limit reports when
  char_count exceeds the service ceiling and the caller decides
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from shipping_forecast.core.ir import AreaForecast, BroadcastSegment
from shipping_forecast.prosody.config import DEFAULT_PROSODY, ProsodyConfig

logger = logging.getLogger(__name__)

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


@dataclass(frozen=True)
class MarkupTemplate:
    """Rendered markup plus the metadata the orchestrator needs.

    RULES:
    - id is derived from the markup, so equal markup means equal id
    - char_count is len(markup), the unit the service limit is counted in
    """

    markup: str
    char_count: int
    id: str
    max_chars: int

    @property
    def over_limit(self) -> bool:
        return self.char_count > self.max_chars

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.markup.encode("utf-8")).hexdigest()


def escape(text: str) -> str:
    """Escape the five XML special characters."""
    for raw, entity in _ESCAPES:
        text = text.replace(raw, entity)
    return text


class TemplateBuilder:
    """Stateless renderer from IR segments to SSML."""

    def __init__(self, config: Optional[ProsodyConfig] = None) -> None:
        self._config = config or DEFAULT_PROSODY
        # Longest names first so "North Utsire" style compounds resolve cleanly
        words = sorted(self._config.pronunciations, key=len, reverse=True)
        self._respell_re = (
            re.compile(r"\b(" + "|".join(re.escape(w) for w in words) + r")\b") if words else None
        )

    @property
    def config(self) -> ProsodyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, segment: BroadcastSegment) -> MarkupTemplate:
        """Render one segment as a standalone <speak> document."""
        return self._wrap(self._body(segment), segment.label)

    def build_text(self, text: str, label: str = "warning", pause_ms: Optional[int] = None) -> MarkupTemplate:
        """Render arbitrary text (inactivity warnings) with a trailing pause."""
        pause = self._config.pause_for(label) if pause_ms is None else pause_ms
        return self._wrap(self._speakable(text) + self._break(pause), label)

    def build_document(self, segments: Iterable[BroadcastSegment]) -> MarkupTemplate:
        """Render several segments into a single <speak> document.

        Logs a warning when the result is over the service ceiling; the
        markup is returned whole either way.
        """
        template = self._wrap("".join(self._body(s) for s in segments), "document")
        if template.over_limit:
            logger.warning(
                "Markup document is %d chars, over the %d char limit",
                template.char_count,
                template.max_chars,
            )
        return template

    # ------------------------------------------------------------------
    # Markup helpers
    # ------------------------------------------------------------------

    def _wrap(self, body: str, label: str) -> MarkupTemplate:
        if self._config.standard_rate != 100:
            body = '<prosody rate="{}%">{}</prosody>'.format(self._config.standard_rate, body)
        markup = "<speak>{}</speak>".format(body)
        digest = hashlib.sha1(markup.encode("utf-8")).hexdigest()[:12]
        return MarkupTemplate(
            markup=markup,
            char_count=len(markup),
            id="{}-{}".format(label, digest),
            max_chars=self._config.max_chars,
        )

    @staticmethod
    def _break(ms: int) -> str:
        return '<break time="{}ms"/>'.format(ms)

    @staticmethod
    def _emphasis(markup: str, level: str) -> str:
        if not markup or level == "none":
            return markup
        return '<emphasis level="{}">{}</emphasis>'.format(level, markup)

    def _speakable(self, text: str) -> str:
        """Escape text after swapping in pronunciation respellings."""
        if self._respell_re is not None:
            text = self._respell_re.sub(lambda m: self._config.pronunciations[m.group(1)], text)
        return escape(text)

    def _body(self, segment: BroadcastSegment) -> str:
        if isinstance(segment, AreaForecast):
            return self._area_body(segment)
        return self._speakable(segment.text) + self._break(self._config.pause_for(segment.label))

    # ------------------------------------------------------------------
    # Area forecasts
    # ------------------------------------------------------------------

    def _area_parts(self, forecast: AreaForecast) -> List[str]:
        """Return [head, middle, tail] markup for an area forecast.

        head is the area name, middle covers wind and precipitation, tail
        covers visibility and icing. Each part ends with its break.
        """
        breaks = self._config.area_breaks_ms
        wind = forecast.wind

        head = self._emphasis(self._speakable(forecast.area.name), self._config.emphasis_for("area_name"))
        head += self._break(breaks["after_area_name"])

        middle = escape(wind.direction) + self._break(breaks["after_wind_direction"])
        middle += " " + escape(wind.force_text) + self._break(breaks["after_wind_force"])
        if wind.change_text:
            middle += " " + escape(wind.change_text) + self._break(breaks["after_wind_force"])
        middle += " " + escape(forecast.precipitation.text) + self._break(breaks["after_precipitation"])

        tail = " " + self._emphasis(escape(forecast.visibility.text), self._config.emphasis_for("visibility"))
        tail += self._break(breaks["after_visibility"])
        if forecast.icing is not None:
            tail += " " + self._emphasis(escape(forecast.icing.text), self._config.emphasis_for("icing"))
            tail += self._break(breaks["after_icing"])
        return [head, middle, tail]

    def _area_body(self, forecast: AreaForecast) -> str:
        parts = self._area_parts(forecast)
        end = self._break(self._config.pause_for(forecast.label))

        if not forecast.area.is_phantom:
            return "".join(parts) + end

        contour = "".join(
            '<prosody pitch="{}">{}</prosody>'.format(pitch, part)
            for pitch, part in zip(self._config.phantom_pitch, parts)
        )
        return '<prosody rate="{}%">{}{}</prosody>'.format(self._config.phantom_rate, contour, end)
