"""Abstract synthesizer and playback-sink interfaces.

WHY: The playback coordinator should not care whether audio came from the
remote voice or the pre-recorded fallback library, nor whether it is
played through speakers, written to disk or thrown away in a test. Two
small ABCs pin down those seams.

HOW: SegmentSynthesizer turns a broadcast segment (or free text) into
SynthesizedAudio. PlaybackSink plays one clip and returns when it has
finished.

RULES:
- Synthesizers raise on failure; they never return empty audio silently
- PlaybackSink.play() must not return before the clip has finished
- PlaybackSink.stop() interrupts the current clip promptly
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from shipping_forecast.api.models import SynthesizedAudio
from shipping_forecast.core.ir import BroadcastSegment


class SegmentSynthesizer(ABC):
    """Renders segments and text to audio.

    To add a new synthesizer:
    1. Subclass SegmentSynthesizer
    2. Implement synthesize_segment() and synthesize_text()
    3. Hand it to PlaybackCoordinator as primary or fallback
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs, e.g. 'remote' or 'library'."""

    @abstractmethod
    async def synthesize_segment(self, segment: BroadcastSegment) -> SynthesizedAudio:
        """Render one broadcast segment."""

    @abstractmethod
    async def synthesize_text(self, text: str, label: str = "warning") -> SynthesizedAudio:
        """Render free text, such as an inactivity warning."""

    async def prefetch(self, segment: BroadcastSegment) -> bool:
        """Prepare audio for an upcoming segment. Returns True when ready.

        Synthesizers without a look-ahead buffer do nothing.
        """
        return False

    def discard_lookahead(self) -> None:
        """Forget any prepared audio."""


class PlaybackSink(ABC):
    """Opaque "play this audio and tell me when it is done" surface."""

    @abstractmethod
    async def play(self, audio: SynthesizedAudio, label: str) -> None:
        """Play one clip to completion."""

    async def stop(self) -> None:
        """Interrupt playback. Sinks without real playback do nothing."""
