"""Synthesis orchestrator: builder + cache + adapter behind one call.

WHY: Playback wants "audio for this segment" and nothing else. Getting
there means rendering markup, checking whether the same markup was
already synthesized, calling the remote voice on a miss, and remembering
the result. On top of that, the next segment should already be
synthesizing while the current one plays, without ever paying for the
same markup twice.

HOW: SynthesisOrchestrator owns a TemplateBuilder, an AudioCache and an
adapter (anything with ``async synthesize(markup)``). Each request is
keyed by the sha256 fingerprint of its markup and resolved in order:
look-ahead buffer → cache → in-flight request → adapter. In-flight
requests are tracked as asyncio tasks so concurrent callers for one
fingerprint await the same call. prefetch() resolves a segment into the
short-lived look-ahead buffer and never raises.

RULES:
- The cache is only written by this class
- Over-limit markup raises MarkupTooLargeError before any network call
- A look-ahead failure is logged and swallowed
- Look-ahead entries are consumed on first use; discard_lookahead()
  drops them all (used by stop() and the fallback switch)
- Waiters on a discarded request get SynthesisDiscardedError, not
  CancelledError, so only their own cancellation stops them
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

from shipping_forecast.api.client import MarkupTooLargeError
from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.audio.base import SegmentSynthesizer
from shipping_forecast.audio.cache import AudioCache
from shipping_forecast.core.ir import BroadcastSegment
from shipping_forecast.prosody.builder import MarkupTemplate, TemplateBuilder

logger = logging.getLogger(__name__)


class SynthesisDiscardedError(RuntimeError):
    """The shared request was cancelled by discard_lookahead()."""


class MarkupSynthesizer(Protocol):
    async def synthesize(self, markup: str) -> SynthesizedAudio: ...


class SynthesisOrchestrator(SegmentSynthesizer):
    """Remote-voice synthesizer with caching, coalescing and look-ahead."""

    def __init__(
        self,
        adapter: MarkupSynthesizer,
        builder: Optional[TemplateBuilder] = None,
        cache: Optional[AudioCache] = None,
    ) -> None:
        self._adapter = adapter
        self._builder = builder or TemplateBuilder()
        self._cache = cache if cache is not None else AudioCache()
        self._lookahead: Dict[str, SynthesizedAudio] = {}
        self._in_flight: Dict[str, "asyncio.Task[SynthesizedAudio]"] = {}
        self.adapter_calls = 0
        self.lookahead_hits = 0
        self.lookahead_failures = 0

    @property
    def name(self) -> str:
        return "remote"

    @property
    def cache(self) -> AudioCache:
        return self._cache

    @property
    def builder(self) -> TemplateBuilder:
        return self._builder

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def synthesize_segment(self, segment: BroadcastSegment) -> SynthesizedAudio:
        return await self._resolve(self._builder.build(segment))

    async def synthesize_text(self, text: str, label: str = "warning") -> SynthesizedAudio:
        return await self._resolve(self._builder.build_text(text, label))

    async def prefetch(self, segment: BroadcastSegment) -> bool:
        """Synthesize a segment into the look-ahead buffer.

        Returns True when audio is ready, False when the attempt failed.
        Failures are logged, never raised, so look-ahead cannot abort
        playback. Cancellation still propagates.
        """
        template = self._builder.build(segment)
        fingerprint = template.fingerprint
        if fingerprint in self._lookahead:
            return True
        try:
            audio = await self._fetch(template)
        except asyncio.CancelledError:
            raise
        except Exception:
            self.lookahead_failures += 1
            logger.warning("Look-ahead synthesis failed for %s", template.id, exc_info=True)
            return False
        self._lookahead[fingerprint] = audio
        return True

    def discard_lookahead(self) -> None:
        """Drop buffered look-ahead audio and cancel in-flight requests."""
        self._lookahead.clear()
        for task in list(self._in_flight.values()):
            task.cancel()
        self._in_flight.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "adapter_calls": self.adapter_calls,
            "lookahead_buffered": len(self._lookahead),
            "lookahead_hits": self.lookahead_hits,
            "lookahead_failures": self.lookahead_failures,
            "in_flight": len(self._in_flight),
            "cache": self._cache.stats(),
        }

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def _resolve(self, template: MarkupTemplate) -> SynthesizedAudio:
        buffered = self._lookahead.pop(template.fingerprint, None)
        if buffered is not None:
            self.lookahead_hits += 1
            return buffered
        return await self._fetch(template)

    async def _fetch(self, template: MarkupTemplate) -> SynthesizedAudio:
        if template.over_limit:
            raise MarkupTooLargeError(
                f"Markup for {template.id} is {template.char_count:,} characters, "
                f"over the limit of {template.max_chars:,}."
            )

        fingerprint = template.fingerprint
        cached = self._cache.get(fingerprint)
        if cached is not None:
            return cached

        task = self._in_flight.get(fingerprint)
        if task is None:
            task = asyncio.ensure_future(self._call_adapter(template))
            self._in_flight[fingerprint] = task
            task.add_done_callback(lambda _t, fp=fingerprint: self._forget(fp, _t))
        # shield so one cancelled waiter does not cancel the shared call
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise SynthesisDiscardedError(
                    "Request for {} was discarded".format(template.id)
                ) from None
            raise

    def _forget(self, fingerprint: str, task: "asyncio.Task[SynthesizedAudio]") -> None:
        if self._in_flight.get(fingerprint) is task:
            del self._in_flight[fingerprint]

    async def _call_adapter(self, template: MarkupTemplate) -> SynthesizedAudio:
        self.adapter_calls += 1
        logger.debug("Synthesizing %s (%d chars)", template.id, template.char_count)
        audio = await self._adapter.synthesize(template.markup)
        self._cache.set(template.fingerprint, audio)
        return audio
